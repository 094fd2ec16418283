"""Workflow markers stored in a document's description field.

The marker is the only persisted workflow state. It is written
optimistically (read, decide, write) without locking, so two overlapping
scanner runs can both see an unmarked document and both act on it; the
consequence is a duplicate notification, never a lost or corrupted file.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


SKIP_PREFIX = "SKIP::"
PENDING_PREFIX = "PENDING_RENAME::"
MANUAL_REVIEW = "PROCESSED_MANUAL_REVIEW"
REJECTED = "REJECTED"


class MarkerState(Enum):
    UNSEEN = "unseen"
    SKIPPED = "skipped"
    AWAITING_APPROVAL = "awaiting_approval"
    MANUAL_REVIEW = "manual_review"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Marker:
    """Parsed marker.

    Attributes:
        state: Workflow state
        detail: Skip reason for SKIPPED, final file name for AWAITING_APPROVAL
    """
    state: MarkerState
    detail: str = ""

    @classmethod
    def unseen(cls) -> "Marker":
        return cls(MarkerState.UNSEEN)

    @classmethod
    def skipped(cls, reason: str) -> "Marker":
        return cls(MarkerState.SKIPPED, reason)

    @classmethod
    def awaiting_approval(cls, final_name: str) -> "Marker":
        return cls(MarkerState.AWAITING_APPROVAL, final_name)

    @classmethod
    def manual_review(cls) -> "Marker":
        return cls(MarkerState.MANUAL_REVIEW)

    @classmethod
    def rejected(cls) -> "Marker":
        return cls(MarkerState.REJECTED)

    @property
    def is_handled(self) -> bool:
        """True if the scanner must leave the document alone."""
        return self.state is not MarkerState.UNSEEN

    @property
    def final_name(self) -> Optional[str]:
        if self.state is MarkerState.AWAITING_APPROVAL:
            return self.detail
        return None

    def format(self) -> str:
        return format_marker(self)


def parse_marker(raw: Optional[str]) -> Marker:
    """Parse a description string into a Marker.

    Descriptions that aren't markers (e.g. typed by a user) read as UNSEEN.
    """
    if not raw:
        return Marker.unseen()
    text = raw.strip()
    if text.startswith(PENDING_PREFIX):
        return Marker.awaiting_approval(text[len(PENDING_PREFIX):])
    if text.startswith(SKIP_PREFIX):
        return Marker.skipped(text[len(SKIP_PREFIX):])
    if text == MANUAL_REVIEW:
        return Marker.manual_review()
    if text == REJECTED:
        return Marker.rejected()
    return Marker.unseen()


def format_marker(marker: Marker) -> str:
    """Serialize a Marker to the string stored on the document."""
    if marker.state is MarkerState.UNSEEN:
        return ""
    if marker.state is MarkerState.SKIPPED:
        return f"{SKIP_PREFIX}{marker.detail}"
    if marker.state is MarkerState.AWAITING_APPROVAL:
        return f"{PENDING_PREFIX}{marker.detail}"
    if marker.state is MarkerState.MANUAL_REVIEW:
        return MANUAL_REVIEW
    return REJECTED
