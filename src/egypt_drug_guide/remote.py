# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""HTTP client for the hosted realtime document store."""

from typing import Any, Optional

import requests
from loguru import logger

from egypt_drug_guide.config import GuideConfig, remote_url
from egypt_drug_guide.exceptions import RemoteConnectionError, RemoteHTTPError, RemoteTimeoutError


def as_mapping(data: Any) -> dict[str, Any]:
    """
    Return a key/value view of a collection read from the store.

    The store serves collections with dense integer keys as JSON arrays, with
    ``null`` holes for missing indices. Those are turned back into a mapping of
    string keys so callers only ever deal with one shape.

    Args:
        data: Decoded JSON body.

    Returns:
        A dictionary keyed by the store keys. Empty for ``None`` or scalars.
    """
    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        return {str(index): item for index, item in enumerate(data) if item is not None}
    return {}


class RemoteStore:
    """Path-addressed JSON resources over HTTP (``{base}/{path}.json``)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = GuideConfig.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Store root URL. Defaults to DRUG_GUIDE_REMOTE_URL or the configured default.
            timeout: Default per-request timeout in seconds.
            session: Optional pre-configured requests session.
        """
        self.base_url = (base_url or remote_url()).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.strip('/')}.json"

    def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        params: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Perform a request and decode the JSON body.

        Raises:
            RemoteTimeoutError: If the request times out.
            RemoteHTTPError: If the store answers with a non-2xx status.
            RemoteConnectionError: On any other transport failure or an undecodable body.
        """
        url = self.url_for(path)
        logger.debug(f"{method} {url}")
        kwargs: dict[str, Any] = {"timeout": timeout or self.timeout}
        if payload is not None:
            kwargs["json"] = payload
        if params:
            kwargs["params"] = params
        if headers:
            kwargs["headers"] = headers

        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
        except requests.Timeout as e:
            logger.error(f"Timed out on {method} {url}: {e}")
            raise RemoteTimeoutError(f"Timed out on {method} {url}") from e
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"HTTP {status} on {method} {url}")
            raise RemoteHTTPError(f"HTTP {status} on {method} {url}", status_code=status) from e
        except requests.RequestException as e:
            logger.error(f"Request failed on {method} {url}: {e}")
            raise RemoteConnectionError(f"Failed to reach {url}: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON body from {url}: {e}")
            raise RemoteConnectionError(f"Invalid JSON body from {url}") from e

    def get(
        self,
        path: str,
        params: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        no_cache: bool = False,
    ) -> Any:
        """Read the JSON document at ``path``. Returns None when the path is empty."""
        headers = {"Cache-Control": "no-cache", "Pragma": "no-cache"} if no_cache else None
        return self._request("GET", path, params=params, timeout=timeout, headers=headers)

    def put(self, path: str, payload: Any) -> Any:
        """Overwrite the document at ``path``."""
        return self._request("PUT", path, payload=payload)

    def post(self, path: str, payload: Any) -> str:
        """
        Append ``payload`` under ``path``.

        Returns:
            The store-generated key of the new child.
        """
        body = self._request("POST", path, payload=payload)
        if not isinstance(body, dict) or "name" not in body:
            raise RemoteConnectionError(f"Unexpected POST response from {self.url_for(path)}")
        return str(body["name"])

    def patch(self, path: str, payload: dict[str, Any]) -> Any:
        """Update only the given fields of the document at ``path``."""
        return self._request("PATCH", path, payload=payload)

    def delete(self, path: str) -> None:
        self._request("DELETE", path)
