"""Shared fixtures: in-memory fakes for the store, the classifier and the relay."""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest

from models import Classifier, Classification, CATEGORIES
from sentinel import Sentinel
from storage import StorageGateway, StorageError, DocumentSummary, DocumentMetadata


INBOX = "inbox-folder"
DEST_ROOT = "dest-root"


class FakeGateway(StorageGateway):
    """In-memory document store.

    Documents are plain dicts; folders are (name, parent) → [ids]. Set
    `fail[op]` to a StorageError to make that operation fail.
    """

    def __init__(self) -> None:
        self.docs: Dict[str, Dict] = {}
        self.folders: Dict[tuple, List[str]] = {}
        self.fail: Dict[str, StorageError] = {}
        self.calls: List[tuple] = []
        self.folder_barrier: Optional[threading.Barrier] = None
        self._lock = threading.Lock()
        self._next_folder = 0

    def add_doc(self, doc_id: str, name: str, mime_type: str = "application/pdf",
                size: int = 1024, created: Optional[datetime] = None,
                marker: str = "", parents: Sequence[str] = (INBOX,),
                content: bytes = b"%PDF-1.4 test") -> None:
        self.docs[doc_id] = {
            "name": name,
            "mime_type": mime_type,
            "size": size,
            "created": created or datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
            "marker": marker,
            "parents": list(parents),
            "content": content,
        }

    def _check(self, op: str, *args) -> None:
        self.calls.append((op,) + args)
        if op in self.fail:
            raise self.fail[op]

    def list_children(self, folder_id: str, page_size: int = 20) -> List[DocumentSummary]:
        self._check("list_children", folder_id)
        children = [
            DocumentSummary(id=doc_id, name=d["name"], mime_type=d["mime_type"], size=d["size"],
                            created_time=d["created"], marker=d["marker"])
            for doc_id, d in self.docs.items() if folder_id in d["parents"]
        ]
        return children[:page_size]

    def get_metadata(self, doc_id: str) -> DocumentMetadata:
        self._check("get_metadata", doc_id)
        if doc_id not in self.docs:
            raise StorageError(f"File not found: {doc_id}", code=404, body="notFound")
        d = self.docs[doc_id]
        return DocumentMetadata(id=doc_id, name=d["name"], mime_type=d["mime_type"],
                                parents=list(d["parents"]), marker=d["marker"])

    def download(self, doc_id: str) -> bytes:
        self._check("download", doc_id)
        return self.docs[doc_id]["content"]

    def patch_marker(self, doc_id: str, marker: str) -> None:
        self._check("patch_marker", doc_id, marker)
        self.docs[doc_id]["marker"] = marker

    def find_or_create_folder(self, name: str, parent_id: str) -> str:
        self._check("find_or_create_folder", name, parent_id)
        with self._lock:
            existing = list(self.folders.get((name, parent_id), []))
        if self.folder_barrier is not None:
            self.folder_barrier.wait(timeout=5)
        if existing:
            return existing[0]
        with self._lock:
            self._next_folder += 1
            folder_id = f"folder-{self._next_folder}"
            self.folders.setdefault((name, parent_id), []).append(folder_id)
        return folder_id

    def relocate(self, doc_id: str, from_parent_ids: Sequence[str], to_parent_id: str) -> None:
        self._check("relocate", doc_id, tuple(from_parent_ids), to_parent_id)
        parents = [p for p in self.docs[doc_id]["parents"] if p not in from_parent_ids]
        if to_parent_id not in parents:
            parents.append(to_parent_id)
        self.docs[doc_id]["parents"] = parents

    def rename(self, doc_id: str, new_name: str) -> None:
        self._check("rename", doc_id, new_name)
        self.docs[doc_id]["name"] = new_name

    def ops(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


class FakeClassifier(Classifier):
    """Returns a fixed classification, or raises `error` if set."""

    def __init__(self, category: str = "請求書・領収書", suggested_name: str = "電気代_請求書",
                 error: Optional[Exception] = None) -> None:
        self.category = category
        self.suggested_name = suggested_name
        self.error = error
        self.calls: List[tuple] = []

    @property
    def name(self) -> str:
        return "fake"

    def classify(self, content: bytes, mime_type: str, file_name: str = "",
                 categories: Sequence[str] = CATEGORIES) -> Classification:
        self.calls.append((file_name, mime_type))
        if self.error is not None:
            raise self.error
        return Classification(category=self.category, suggested_name=self.suggested_name)


class FakeNotifier:
    """Records NotificationRequests instead of posting them."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.requests = []
        self.error = error

    def notify(self, request):
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return f"msg-{len(self.requests)}"


@pytest.fixture(autouse=True)
def headless_console():
    """Run every test with console output going to stdout."""
    Sentinel.set_app(None)
    yield
    Sentinel.set_app(None)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def notifier():
    return FakeNotifier()
