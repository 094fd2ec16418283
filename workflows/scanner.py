"""Inbox scanner: classify new documents and ask for approval."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

from models import (
    Classifier,
    ClassificationFailure,
    CATEGORIES,
    create_classifier,
    is_supported_mime_type,
)
from relay.schemas import NotificationRequest
from sentinel import Sentinel
from sentinel.config import ConfigError
from storage import StorageGateway, StorageError, DocumentSummary, create_gateway
from .markers import Marker, parse_marker
from .naming import build_final_name, name_stem
from .notifier import RelayClient

if TYPE_CHECKING:
    from auth import TokenBroker
    from sentinel.config import Settings


MANUAL_REVIEW_CATEGORY = "Manual Review"
APPROVAL_TITLE = "New File Ready for Approval"
REVIEW_TITLE = "Manual Review Needed"


class Outcome(Enum):
    PROPOSED = "proposed"
    MANUAL_REVIEW = "manual_review"
    SKIPPED = "skipped"


@dataclass
class ScanReport:
    """Counts for one scanner run."""
    listed: int = 0
    already_handled: int = 0
    deferred: int = 0
    proposed: int = 0
    manual_review: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.PROPOSED:
            self.proposed += 1
        elif outcome is Outcome.MANUAL_REVIEW:
            self.manual_review += 1
        else:
            self.skipped += 1

    def summary(self) -> str:
        return (f"{self.listed} listed, {self.proposed} proposed, "
                f"{self.manual_review} manual review, {self.skipped} skipped, "
                f"{self.already_handled} already handled, {self.deferred} deferred, "
                f"{self.errors} errors")

    def to_dict(self) -> dict:
        return dict(self.__dict__)


def review_category(reason: str) -> str:
    """Category string shown for failures, e.g. 'Manual Review (API error)'."""
    return f"{MANUAL_REVIEW_CATEGORY} ({reason})"


class Scanner:
    """Drives documents from Unseen to AwaitingApproval / ManualReview / Skipped.

    run_once() is safe to call on a timer. Nothing is locked: the marker
    check is the only guard against reprocessing, so two overlapping runs
    may both notify for the same new document.
    """

    def __init__(self, gateway: StorageGateway, classifier: Classifier,
                 notifier: RelayClient, inbox_folder_id: str,
                 page_size: int = 20, max_documents: int = 10,
                 categories: Sequence[str] = CATEGORIES) -> None:
        self.gateway = gateway
        self.classifier = classifier
        self.notifier = notifier
        self.inbox_folder_id = inbox_folder_id
        self.page_size = page_size
        self.max_documents = max_documents
        self.categories = tuple(categories)

    def run_once(self) -> ScanReport:
        """Process one page of the inbox.

        Raises:
            StorageError: If the inbox can't be listed
            ConfigError: If configuration problems surface mid-run
        """
        report = ScanReport()
        docs = self.gateway.list_children(self.inbox_folder_id, self.page_size)
        report.listed = len(docs)

        pending = [d for d in docs if not parse_marker(d.marker).is_handled]
        report.already_handled = len(docs) - len(pending)
        batch = pending[:self.max_documents]
        report.deferred = len(pending) - len(batch)

        if not batch:
            Sentinel.print_right("No new files in inbox")
            return report

        Sentinel.print_right(f"Found {len(pending)} new files in inbox")
        if report.deferred:
            Sentinel.print_right(f"Processing {len(batch)} now, {report.deferred} left for the next run")
        Sentinel.set_total_files(len(batch))

        for i, doc in enumerate(batch, 1):
            Sentinel.set_progress(i, len(batch))
            Sentinel.print_right(f"\n--- {doc.name} ---")
            try:
                report.record(self.process_document(doc))
            except ConfigError:
                raise
            except Exception as e:
                report.errors += 1
                Sentinel.print_right(f"[red]Error processing {doc.name}: {e}[/red]")

        Sentinel.print_right(f"[green]Scan complete:[/green] {report.summary()}")
        return report

    def process_document(self, doc: DocumentSummary) -> Outcome:
        """Classify one unseen document and notify.

        Download and notification failures propagate to run_once(), which
        counts them as errors. A download failure leaves the document
        unmarked so the next run tries again.
        """
        if doc.size == 0:
            Sentinel.print_right("Skipping empty file")
            self._write_marker(doc, Marker.skipped("empty file"))
            return Outcome.SKIPPED

        if not is_supported_mime_type(doc.mime_type):
            Sentinel.print_right(f"Skipping unsupported type: {doc.mime_type}")
            self._write_marker(doc, Marker.skipped(f"unsupported type {doc.mime_type}"))
            self._notify_review(doc, "non-conforming file",
                                f"Unsupported file type `{doc.mime_type}`. Please file it by hand.")
            return Outcome.SKIPPED

        content = self.gateway.download(doc.id)

        Sentinel.print_right(f"[red]Classifying with {self.classifier.name}...[/red]")
        try:
            result = self.classifier.classify(content, doc.mime_type, doc.name, self.categories)
        except ClassificationFailure as e:
            return self._manual_review(doc, e.reason, str(e))
        except ConfigError:
            raise
        except Exception as e:
            return self._manual_review(doc, "API error", str(e))

        if result.category not in self.categories:
            return self._manual_review(doc, "unknown category",
                                       f"Classifier returned unknown category '{result.category}'")
        if not name_stem(result.suggested_name):
            return self._manual_review(doc, "malformed response",
                                       f"Classifier returned unusable file name '{result.suggested_name}'")

        final_name = build_final_name(result.suggested_name, doc.created_time, doc.name)
        Sentinel.print_right(f"✓ {result.category} → {final_name}")

        self._write_marker(doc, Marker.awaiting_approval(final_name))
        self.notifier.notify(NotificationRequest(
            title=APPROVAL_TITLE,
            description=(f"File classified as **{result.category}**. "
                         "Approve to rename and move it."),
            file_name=doc.name,
            file_id=doc.id,
            category=result.category,
            new_file_name=final_name,
        ))
        _log_proposal(doc.name, result.category, final_name)
        return Outcome.PROPOSED

    def _manual_review(self, doc: DocumentSummary, reason: str, detail: str) -> Outcome:
        Sentinel.print_right(f"[yellow]Manual review ({reason}): {detail}[/yellow]")
        self._write_marker(doc, Marker.manual_review())
        self._notify_review(doc, reason, detail)
        return Outcome.MANUAL_REVIEW

    def _notify_review(self, doc: DocumentSummary, reason: str, detail: str) -> None:
        if len(detail) > 500:
            detail = detail[:500] + "..."
        self.notifier.notify(NotificationRequest(
            title=REVIEW_TITLE,
            description=f"Manual review needed: {detail}",
            file_name=doc.name,
            file_id=doc.id,
            category=review_category(reason),
        ))

    def _write_marker(self, doc: DocumentSummary, marker: Marker) -> None:
        """Best-effort marker write; a failure is logged and processing continues."""
        try:
            self.gateway.patch_marker(doc.id, marker.format())
        except StorageError as e:
            Sentinel.warn(f"Failed to write marker on {doc.name}: {e}")


def _log_proposal(original_name: str, category: str, final_name: str) -> None:
    """Log a proposal to the left panel."""
    timestamp = datetime.now().strftime("%H:%M")
    Sentinel.print_left(f"{timestamp} {original_name}", f"  → {category}/{final_name}")


def create_scanner(settings: "Settings", broker: Optional["TokenBroker"] = None) -> Scanner:
    """Wire a Scanner from settings.

    Raises:
        ConfigError: If inbox, relay or classifier settings are missing
        CredentialError: If service account credentials can't be loaded
    """
    settings.require("inbox_folder_id", "relay_url", "relay_api_key")
    classifier = create_classifier(settings.llm_provider)
    return Scanner(
        gateway=create_gateway(settings, broker),
        classifier=classifier,
        notifier=RelayClient(settings.relay_url, settings.relay_api_key),
        inbox_folder_id=settings.inbox_folder_id,
        page_size=settings.scan_page_size,
        max_documents=settings.scan_max_documents,
    )
