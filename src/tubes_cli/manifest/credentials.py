"""Password generation for the director manifest.

This is the only place tubes produces security-sensitive random values, and
it draws them from the `secrets` module.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass

ALPHABET = string.ascii_letters + string.digits
DEFAULT_LENGTH = 12


class CredentialsGenerator:
    """Generate random alphanumeric passwords."""

    def __init__(self, length: int = DEFAULT_LENGTH):
        if length < 1:
            raise ValueError("password length must be positive")
        self.length = length

    def generate(self) -> str:
        return "".join(secrets.choice(ALPHABET) for _ in range(self.length))


@dataclass(frozen=True)
class DirectorCredentials:
    """Passwords for the director's internal components."""

    nats: str
    postgres: str
    registry: str
    blobstore_director: str
    blobstore_agent: str
    director_admin: str
    hm: str
    mbus: str

    @classmethod
    def generate(cls, generator: CredentialsGenerator) -> DirectorCredentials:
        return cls(
            nats=generator.generate(),
            postgres=generator.generate(),
            registry=generator.generate(),
            blobstore_director=generator.generate(),
            blobstore_agent=generator.generate(),
            director_admin=generator.generate(),
            hm=generator.generate(),
            mbus=generator.generate(),
        )
