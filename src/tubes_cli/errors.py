"""Error types for tubes-cli.

Every workflow step raises one of these (or lets an OSError from the local
filesystem through). The application never catches them; the CLI prints the
message and exits non-zero.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TubesError(Exception):
    """Base error class for tubes errors."""

    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationError(TubesError):
    """User input rejected before any side effect."""


@dataclass
class AlreadyProvisionedError(TubesError):
    """The environment's config store already holds state."""

    message: str = "state directory must be empty"


@dataclass
class ProviderError(TubesError):
    """A cloud API call failed. The provider's message is passed through."""

    code: str | None = None


@dataclass
class TimeoutError(ProviderError):
    """Waiting for a stack exceeded its deadline."""


@dataclass
class NotFoundError(TubesError):
    """A config key or an expected stack resource does not exist."""


@dataclass
class AlreadyExistsError(ProviderError):
    """A keypair with the requested name already exists."""


@dataclass
class CatalogError(TubesError):
    """The bosh.io release/stemcell catalog could not be read."""

    url: str = ""


def provider_error_from(err: Exception) -> ProviderError:
    """Wrap a botocore exception, keeping its message verbatim.

    Args:
        err: ClientError, BotoCoreError or similar

    Returns:
        ProviderError carrying str(err) and, for ClientError, the AWS error code
    """
    code = None
    response = getattr(err, "response", None)
    if isinstance(response, dict):
        code = response.get("Error", {}).get("Code")
    return ProviderError(message=str(err), code=code)
