"""Package registry capability."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import httpx

from pyworkspaces.errors import PublishError, PyWorkspacesError
from pyworkspaces.log import get_logger
from pyworkspaces.uv.publish import artifacts_for, build, upload

logger = get_logger(__name__)


class RegistryClient(Protocol):
    """What the publish scheduler needs from a package index."""

    async def publish(self, name: str, version: str, artifact_location: Path) -> None:
        """Upload one package version.

        Raises:
            PublishError: If the upload is rejected.
        """
        ...

    async def query(self, name: str, version: str) -> bool:
        """Whether the version is visible to index consumers."""
        ...


class UvRegistryClient:
    """Builds with ``uv build``, uploads with ``uv publish``, polls the JSON API.

    Attributes:
        index_url: Base URL of the index, e.g. ``https://pypi.org``.
        publish_url: Upload URL passed to ``uv publish``, None for its default.
        token: Upload token.
        timeout: HTTP timeout for availability queries, in seconds.
    """

    def __init__(
        self,
        index_url: str = "https://pypi.org",
        *,
        publish_url: str | None = None,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.index_url = index_url.rstrip("/")
        self.publish_url = publish_url
        self.token = token
        self.timeout = timeout
        self._transport = transport

    async def publish(self, name: str, version: str, artifact_location: Path) -> None:
        """Build the package at ``artifact_location`` and upload it.

        Raises:
            PublishError: If building or uploading fails.
        """
        try:
            dist_dir = await build(artifact_location, name=name, version=version)
            await upload(
                artifacts_for(dist_dir, name, version),
                name=name,
                version=version,
                publish_url=self.publish_url,
                token=self.token,
            )
        except PublishError:
            raise
        except (PyWorkspacesError, OSError) as e:
            raise PublishError(str(e), package=name, version=version) from e
        logger.info("published", package=name, version=version)

    def json_url(self, name: str, version: str) -> str:
        return f"{self.index_url}/pypi/{name}/{version}/json"

    async def query(self, name: str, version: str) -> bool:
        """Ask the JSON API whether ``name==version`` exists.

        HTTP 200 means present and 404 absent. Any other status or a transport
        error counts as absent for this attempt.
        """
        url = self.json_url(name, version)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning("registry_query_error", package=name, version=version, error=str(e))
            return False

        if response.status_code == 200:
            return True
        if response.status_code != 404:
            logger.warning(
                "registry_query_status",
                package=name,
                version=version,
                status=response.status_code,
            )
        return False
