"""
Terraform Cloud API gateway.

Issues authenticated reads against the platform's REST API, unwraps the
JSON:API envelope and translates transport failures into domain errors.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

import requests


logger = logging.getLogger(__name__)

TFE_ADDRESS = "https://app.terraform.io"
API_PREFIX = "/api/v2"


class TFWaitError(Exception):
    """Base class for every fatal tfwait condition."""
    pass


class Unauthorized(TFWaitError):
    """Raised when the API rejects the token."""

    def __init__(self, message: str = "401 - Unauthorized. Please make sure the token is correct."):
        super().__init__(message)


class NotFound(TFWaitError):
    """Raised when the organization or workspace does not exist."""

    def __init__(
        self,
        message: str = (
            "Could not find your workspace. "
            "Please make sure the organization, workspace names are correct."
        ),
    ):
        super().__init__(message)


class TransportError(TFWaitError):
    """Raised for any other network or HTTP failure."""
    pass


class MalformedResponse(TFWaitError):
    """Raised when a response body is not the JSON:API document we expect."""
    pass


def check_base_url(base_url: str) -> str:
    """Validate a Terraform Cloud address; API links are resolved against its root."""
    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid Terraform Cloud address: {base_url}")
    if parsed.path not in ("", "/") or parsed.query or parsed.fragment:
        raise ValueError(f"Terraform Cloud address must not include a path: {base_url}")
    return base_url.rstrip("/")


def get_headers(token: str) -> dict:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/vnd.api+json",
    }


class TFEClient:
    """
    Read-only client for the Terraform Cloud / Enterprise API.

    Holds the base address and credential so no global configuration is
    needed. A ``requests.Session`` can be injected for connection reuse or
    testing; a session created here is closed by ``close()`` or on leaving
    a ``with`` block.
    """

    def __init__(
        self,
        token: str,
        base_url: str = TFE_ADDRESS,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        if not token:
            raise ValueError("A Terraform Cloud API token is required")
        self.token = token
        self.base_url = check_base_url(base_url)
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> TFEClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def url_for(self, path: str) -> str:
        """Resolve an API path or a link returned by the API to a full URL."""
        return urljoin(self.base_url + "/", path)

    def fetch_resource(self, path: str) -> dict[str, Any]:
        """
        GET a resource and return the ``data`` object of its envelope.

        Args:
            path: Relative API path (``/api/v2/...``) or a related link
                previously returned by the API.
        """
        url = self.url_for(path)
        logger.debug("GET %s", url)

        try:
            resp = self.session.get(url, headers=get_headers(self.token), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(str(e)) from e

        if resp.status_code == 401:
            raise Unauthorized()
        if resp.status_code == 404:
            raise NotFound()

        try:
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise TransportError(str(e)) from e

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedResponse(f"Response from {url} is not valid JSON") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise MalformedResponse(f"Response from {url} has no 'data' object")
        return data

    def get_workspace(self, organization: str, workspace: str) -> dict[str, Any]:
        """Look up a workspace by name."""
        return self.fetch_resource(f"{API_PREFIX}/organizations/{organization}/workspaces/{workspace}")
