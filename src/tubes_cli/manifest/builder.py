"""Manifest builder used by Boot."""

from __future__ import annotations

from typing import Protocol

from ..aws.resources import BaseStackResources
from ..shared.logging import get_logger
from .boshio import AWS_CPI_RELEASE, AWS_STEMCELL, BOSH_RELEASE, BoshIOClient
from .credentials import CredentialsGenerator, DirectorCredentials
from .director import DirectorManifestConfig, DirectorManifestGenerator

log = get_logger(__name__)


class ManifestBuilder(Protocol):
    """Produces the director manifest for a freshly booted stack."""

    def build(
        self, name: str, resources: BaseStackResources, access_key: str, secret_key: str
    ) -> bytes: ...


class BoshInitManifestBuilder:
    """Build a bosh-init manifest from the latest bosh.io artifacts."""

    def __init__(
        self,
        boshio: BoshIOClient | None = None,
        generator: DirectorManifestGenerator | None = None,
        credentials: CredentialsGenerator | None = None,
    ):
        self.boshio = boshio or BoshIOClient()
        self.generator = generator or DirectorManifestGenerator()
        self.credentials = credentials or CredentialsGenerator()

    def build(
        self, name: str, resources: BaseStackResources, access_key: str, secret_key: str
    ) -> bytes:
        bosh_release = self.boshio.latest_release(BOSH_RELEASE)
        cpi_release = self.boshio.latest_release(AWS_CPI_RELEASE)
        stemcell = self.boshio.latest_stemcell(AWS_STEMCELL)
        log.info(
            "building director manifest",
            bosh=bosh_release.version,
            cpi=cpi_release.version,
            stemcell=stemcell.version,
        )

        config = DirectorManifestConfig(
            name=name,
            resources=resources,
            access_key=access_key,
            secret_key=secret_key,
            bosh_release=bosh_release,
            cpi_release=cpi_release,
            stemcell=stemcell,
            credentials=DirectorCredentials.generate(self.credentials),
        )
        return self.generator.generate(config)
