"""Director manifest generation.

This package turns the discovered base stack resources and a fresh IAM
access key into a bosh-init manifest:
1. Looks up the latest BOSH, AWS CPI and stemcell artifacts on bosh.io
2. Generates passwords for the director's components
3. Renders the manifest YAML
"""

from .boshio import AWS_CPI_RELEASE, AWS_STEMCELL, BOSH_RELEASE, Artifact, BoshIOClient
from .builder import BoshInitManifestBuilder, ManifestBuilder
from .credentials import CredentialsGenerator, DirectorCredentials
from .director import DirectorManifestConfig, DirectorManifestGenerator

__all__ = [
    # Catalog
    "BoshIOClient",
    "Artifact",
    "BOSH_RELEASE",
    "AWS_CPI_RELEASE",
    "AWS_STEMCELL",
    # Credentials
    "CredentialsGenerator",
    "DirectorCredentials",
    # Manifest
    "DirectorManifestConfig",
    "DirectorManifestGenerator",
    "ManifestBuilder",
    "BoshInitManifestBuilder",
]
