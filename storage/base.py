"""Base classes for the document store gateway.

This module defines the interface the scanner and commit handler use to talk
to the document store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence


class StorageError(Exception):
    """A document store call failed.

    Attributes:
        code: HTTP status code, or None for transport-level failures
        body: Raw response body from the store (may be empty)
    """

    def __init__(self, message: str, code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.body = body


# Characters stripped from folder names before they reach a query or create call
_QUOTE_CHARS = "'\"‘’“”`"


def sanitize_folder_name(name: str) -> str:
    """Strip quote characters and surrounding whitespace from a folder name."""
    return "".join(c for c in name if c not in _QUOTE_CHARS).strip()


@dataclass
class DocumentSummary:
    """One entry from an inbox listing.

    Attributes:
        id: Store-specific document identifier
        name: Display name
        mime_type: MIME type reported by the store
        size: Size in bytes (0 for empty or native documents without a size)
        created_time: Creation timestamp
        marker: Workflow marker string (empty if none)
    """
    id: str
    name: str
    mime_type: str
    size: int = 0
    created_time: Optional[datetime] = None
    marker: str = ""


@dataclass
class DocumentMetadata:
    """Metadata of a single document as read at commit time."""
    id: str
    name: str = ""
    mime_type: str = ""
    parents: List[str] = field(default_factory=list)
    marker: str = ""


class StorageGateway(ABC):
    """Abstract interface to the document store.

    Every method raises StorageError when the store answers with a non-2xx
    response. Callers decide which failures are fatal.
    """

    @abstractmethod
    def list_children(self, folder_id: str, page_size: int = 20) -> List[DocumentSummary]:
        """Return one page of non-trashed, non-folder children of a folder."""
        pass

    @abstractmethod
    def get_metadata(self, doc_id: str) -> DocumentMetadata:
        """Read the current name, parents and marker of a document."""
        pass

    @abstractmethod
    def download(self, doc_id: str) -> bytes:
        """Download the document's content."""
        pass

    @abstractmethod
    def patch_marker(self, doc_id: str, marker: str) -> None:
        """Write the workflow marker (empty string clears it)."""
        pass

    @abstractmethod
    def find_or_create_folder(self, name: str, parent_id: str) -> str:
        """Return the id of the folder called `name` under `parent_id`.

        Creates the folder if none exists. There is no lock: two concurrent
        callers may both create it, leaving duplicate folders behind.
        """
        pass

    @abstractmethod
    def relocate(self, doc_id: str, from_parent_ids: Sequence[str], to_parent_id: str) -> None:
        """Replace the document's parents in a single store call."""
        pass

    @abstractmethod
    def rename(self, doc_id: str, new_name: str) -> None:
        """Change the document's display name."""
        pass
