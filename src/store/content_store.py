"""Content store adapter contract.

The engine talks to the storage node only through this narrow protocol,
so a local daemon, an embedded node or a test double are interchangeable.
"""

from __future__ import annotations

from typing import Protocol

from core.types import ImportedContent


class ContentStore(Protocol):
    """Capabilities the cohost engine needs from a content-addressed node.

    Implementations raise ``CohostImportError`` when content cannot be
    resolved, retrieved or pinned, and ``CohostStoreUnavailableError`` when
    the node itself is unreachable. ``unpin`` of an id that is not pinned
    is a no-op.
    """

    def describe(self) -> str: ...

    def import_content(self, domain: str) -> ImportedContent: ...

    def pin(self, content_id: str) -> None: ...

    def unpin(self, content_id: str) -> None: ...

    def list_pinned(self) -> frozenset[str]: ...

    def fetch(self, content_id: str) -> bytes: ...
