"""HTTP client for the bosh.io release and stemcell catalog.

bosh.io lists every published version of a release or stemcell, newest
first:

    GET /api/v1/releases/github.com/cloudfoundry/bosh
    GET /api/v1/stemcells/bosh-aws-xen-hvm-ubuntu-trusty-go_agent
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from ..config import DEFAULT_BOSHIO_URL
from ..errors import CatalogError
from ..shared.logging import get_logger

log = get_logger(__name__)

BOSH_RELEASE = "github.com/cloudfoundry/bosh"
AWS_CPI_RELEASE = "github.com/cloudfoundry-incubator/bosh-aws-cpi-release"
AWS_STEMCELL = "bosh-aws-xen-hvm-ubuntu-trusty-go_agent"


@dataclass(frozen=True)
class Artifact:
    """A downloadable release or stemcell tarball."""

    name: str
    version: str
    url: str
    sha1: str


class BoshIOClient:
    """Look up the latest releases and stemcells on bosh.io."""

    def __init__(
        self,
        base_url: str = DEFAULT_BOSHIO_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Catalog URL (e.g., https://bosh.io)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (for tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _get_json(self, path: str) -> Any:
        """GET a catalog path and decode the JSON body.

        Raises:
            CatalogError: On connection, HTTP or decoding errors
        """
        url = f"{self.base_url}{path}"
        log.debug("fetching catalog", url=url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogError(
                message=f"bosh.io returned HTTP {e.response.status_code} for {url}", url=url
            ) from e
        except httpx.TimeoutException as e:
            raise CatalogError(
                message=f"request to {url} timed out after {self.timeout}s", url=url
            ) from e
        except httpx.HTTPError as e:
            raise CatalogError(message=f"cannot reach bosh.io at {url}: {e}", url=url) from e
        except ValueError as e:
            raise CatalogError(message=f"invalid JSON from {url}", url=url) from e

    def _first_entry(self, path: str) -> dict[str, Any]:
        entries = self._get_json(path)
        if not isinstance(entries, list) or not entries:
            raise CatalogError(message=f"no versions listed at {self.base_url}{path}", url=path)
        return entries[0]

    def latest_release(self, name: str) -> Artifact:
        """Latest version of a release, e.g. BOSH_RELEASE."""
        entry = self._first_entry(f"/api/v1/releases/{name}")
        try:
            return Artifact(
                name=entry["name"],
                version=entry["version"],
                url=entry["url"],
                sha1=entry["sha1"],
            )
        except KeyError as e:
            raise CatalogError(message=f"release {name} entry missing {e}", url=name) from e

    def latest_stemcell(self, name: str = AWS_STEMCELL, light: bool = True) -> Artifact:
        """Latest version of a stemcell.

        Light stemcells reference a pre-published AMI and are the default on
        AWS; regular stemcells carry the image themselves.
        """
        entry = self._first_entry(f"/api/v1/stemcells/{name}")
        flavour = "light" if light else "regular"
        try:
            tarball = entry[flavour]
            return Artifact(
                name=entry["name"],
                version=entry["version"],
                url=tarball["url"],
                sha1=tarball["sha1"],
            )
        except (KeyError, TypeError) as e:
            raise CatalogError(
                message=f"stemcell {name} has no {flavour} tarball", url=name
            ) from e
