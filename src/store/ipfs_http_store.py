"""IPFS node adapter over the Kubo HTTP RPC API.

This module maps the content store contract onto ``/api/v0`` calls and
translates transport and node failures into the Cohost error taxonomy.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    IPFS_API_PATH,
)
from core.errors import (
    CohostImportError,
    CohostStoreUnavailableError,
    CohostTimeoutError,
)
from core.logging_config import get_logger
from core.types import ImportedContent

_LOGGER = get_logger(__name__)
_NOT_PINNED_MARKER = "not pinned"


class IpfsHttpStore:
    """Content store backed by a local IPFS daemon's HTTP API."""

    def __init__(
        self,
        api_url: str,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        """Create an adapter for the node at ``api_url``.

        Args:
            api_url: Node RPC base URL, e.g. ``http://127.0.0.1:5001``.
            request_timeout: Per-request transport timeout in seconds.
            fetch_timeout: Node-side retrieval timeout used by ``fetch``.
            client: Optional preconfigured client, mainly for tests.
        """
        self._api_url = api_url.rstrip("/")
        self._fetch_timeout = fetch_timeout
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(
            base_url=self._api_url + IPFS_API_PATH,
            timeout=request_timeout,
        )

    def close(self) -> None:
        """Close the underlying HTTP client when owned by this adapter."""
        if self._owns_client:
            self._client.close()

    def describe(self) -> str:
        """Return a one-line provider description, checking reachability.

        Raises:
            CohostStoreUnavailableError: If the daemon cannot be reached.
        """
        payload = self._post_json("id", {})
        peer_id = payload.get("ID", "unknown")
        return f"local ipfs daemon via http api at {self._api_url} (peer {peer_id})"

    def import_content(self, domain: str) -> ImportedContent:
        """Resolve a domain's DNSLink and stat the published tree.

        Args:
            domain: Normalized domain name.

        Returns:
            Content id and cumulative size of the current tree.

        Raises:
            CohostImportError: If resolution or stat fails on the node.
        """
        resolved = self._post_json("resolve", {"arg": f"/ipns/{domain}", "recursive": "true"})
        path = resolved.get("Path")
        if not isinstance(path, str) or not path:
            raise CohostImportError(
                f"Node returned no DNSLink path for '{domain}'. "
                "Check that the domain publishes a dnslink TXT record."
            )
        stat = self._post_json("files/stat", {"arg": path})
        try:
            content_id = str(stat["Hash"])
            cumulative_size = int(stat["CumulativeSize"])
        except (KeyError, TypeError, ValueError) as error:
            raise CohostImportError(
                f"Node returned an unexpected stat payload for {path}: {error}."
            ) from error
        _LOGGER.debug("content_resolved", domain=domain, path=path, content_id=content_id)
        return ImportedContent(content_id=content_id, cumulative_size=cumulative_size)

    def pin(self, content_id: str) -> None:
        """Recursively pin a content id, fetching it when not local."""
        self._post_json("pin/add", {"arg": content_id, "recursive": "true"})

    def unpin(self, content_id: str) -> None:
        """Remove a recursive pin; ids that are not pinned are ignored."""
        try:
            self._post_json("pin/rm", {"arg": content_id})
        except CohostImportError as error:
            if _NOT_PINNED_MARKER in str(error).lower():
                _LOGGER.debug("unpin_skipped", content_id=content_id)
                return
            raise

    def list_pinned(self) -> frozenset[str]:
        """Return the node's recursive pin set."""
        payload = self._post_json("pin/ls", {"type": "recursive"})
        keys = payload.get("Keys") or {}
        if not isinstance(keys, dict):
            raise CohostImportError(
                "Node returned an unexpected pin/ls payload: expected Keys mapping."
            )
        return frozenset(str(key) for key in keys)

    def fetch(self, content_id: str) -> bytes:
        """Retrieve the root block of a content id.

        The node is given ``fetch_timeout`` to find the block locally or on
        the network, which makes this a recoverability probe.
        """
        response = self._post(
            "block/get",
            {"arg": content_id, "timeout": f"{self._fetch_timeout:g}s"},
        )
        return response.content

    def _post_json(self, command: str, params: dict[str, str]) -> dict[str, Any]:
        """Call one RPC command and decode its JSON object response."""
        response = self._post(command, params)
        try:
            payload = response.json()
        except ValueError as error:
            raise CohostImportError(
                f"Node returned invalid JSON for {command}: {error}."
            ) from error
        if not isinstance(payload, dict):
            raise CohostImportError(f"Node returned unexpected payload for {command}.")
        return payload

    def _post(self, command: str, params: dict[str, str]) -> httpx.Response:
        """Call one RPC command, mapping failures to Cohost errors.

        Raises:
            CohostStoreUnavailableError: On connection failures.
            CohostTimeoutError: When a reachable node answers too slowly.
            CohostImportError: When the node answers with an error status.
        """
        try:
            response = self._client.post(f"/{command}", params=params)
        except (httpx.ConnectError, httpx.ConnectTimeout) as error:
            raise CohostStoreUnavailableError(
                f"Cannot reach IPFS node at {self._api_url}: {error}. "
                "Start the daemon (ipfs daemon) or set COHOST_IPFS_API_URL."
            ) from error
        except (httpx.ReadTimeout, httpx.WriteTimeout) as error:
            raise CohostTimeoutError(
                f"IPFS node timed out on {command} {params.get('arg', '')}: {error}. "
                "Retry the command once the content is reachable."
            ) from error
        except httpx.TransportError as error:
            raise CohostStoreUnavailableError(
                f"Transport failure talking to IPFS node at {self._api_url}: {error}."
            ) from error
        if response.is_error:
            raise CohostImportError(
                f"IPFS node rejected {command} {params.get('arg', '')}".rstrip()
                + f": {_error_message(response)}"
            )
        return response


def _error_message(response: httpx.Response) -> str:
    """Extract the node's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("Message"):
        return str(payload["Message"])
    return f"HTTP {response.status_code}"
