"""Google Drive storage gateway."""

import io
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload

from auth import TokenBroker, ServiceIdentity
from sentinel import Sentinel
from .base import (
    StorageGateway,
    StorageError,
    DocumentSummary,
    DocumentMetadata,
    sanitize_folder_name,
)
from utils.retry import (
    retry_on_transient_error,
    is_transient_network_error,
    TRANSIENT_HTTP_STATUS_CODES,
)


FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
REQUEST_TIMEOUT = 10

LIST_FIELDS = "files(id, name, mimeType, size, createdTime, description)"
METADATA_FIELDS = "id, name, mimeType, parents, description"


# ---------------------------------------------------------------------------
# Google Drive Retry Configuration
# ---------------------------------------------------------------------------

def _is_retryable_gdrive_error(exc: Exception) -> bool:
    """Determine if a Google Drive API error should be retried."""
    if isinstance(exc, HttpError):
        return exc.resp.status in TRANSIENT_HTTP_STATUS_CODES
    return is_transient_network_error(exc)


def _log_retry(exc: Exception, attempt: int, delay: float) -> None:
    if isinstance(exc, HttpError):
        error_desc = f"HTTP {exc.resp.status}"
    else:
        error_desc = type(exc).__name__
    Sentinel.print_right(f"  [Retry] {error_desc} on attempt {attempt}, retrying in {delay:.1f}s...")


def _escape_query_value(value: str) -> str:
    """Escape a value for use in Google Drive API query strings."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _parse_drive_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp such as 2024-03-01T09:30:00.000Z."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _http_error_body(exc: HttpError) -> str:
    content = exc.content
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return str(content or "")


def _build_service(token: str):
    """Build a Drive v3 client authorized with a bearer token."""
    creds = Credentials(token=token)
    http = AuthorizedHttp(creds, http=httplib2.Http(timeout=REQUEST_TIMEOUT))
    return build("drive", "v3", http=http, cache_discovery=False)


class DriveGateway(StorageGateway):
    """Storage gateway backed by the Drive v3 API.

    Each call obtains a bearer token from the TokenBroker (normally a cache
    hit). A 401 from Drive invalidates that token so the next call performs
    a fresh exchange.
    """

    def __init__(self, broker: TokenBroker, identity: ServiceIdentity,
                 service_factory: Callable[[str], object] = _build_service,
                 max_retries: int = 5) -> None:
        self.broker = broker
        self.identity = identity
        self._service_factory = service_factory
        self._max_retries = max_retries
        self._service = None
        self._service_token: Optional[str] = None

    def _drive(self):
        token = self.broker.get_token(self.identity)
        if self._service is None or token != self._service_token:
            self._service = self._service_factory(token)
            self._service_token = token
        return self._service

    def _execute(self, what: str, make_request: Callable[[object], object]) -> Dict:
        """Build and execute a request, translating errors to StorageError."""
        @retry_on_transient_error(
            is_retryable=_is_retryable_gdrive_error,
            max_retries=self._max_retries,
            on_retry=_log_retry,
        )
        def execute():
            return make_request(self._drive()).execute()

        try:
            return execute()
        except HttpError as e:
            status = e.resp.status
            if status == 401:
                self.broker.invalidate(self.identity)
            raise StorageError(f"{what} failed (HTTP {status})", code=status,
                               body=_http_error_body(e))
        except OSError as e:
            raise StorageError(f"{what} failed: {e}")

    # =========================================================================
    # Read operations
    # =========================================================================

    def list_children(self, folder_id: str, page_size: int = 20) -> List[DocumentSummary]:
        query = (
            f"'{_escape_query_value(folder_id)}' in parents and trashed=false "
            f"and mimeType!='{FOLDER_MIME_TYPE}'"
        )
        response = self._execute("List inbox", lambda drive: drive.files().list(
            q=query,
            pageSize=page_size,
            orderBy="createdTime",
            fields=LIST_FIELDS,
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        ))

        results = []
        for item in response.get('files', []):
            results.append(DocumentSummary(
                id=item['id'],
                name=item.get('name', ''),
                mime_type=item.get('mimeType', ''),
                size=int(item['size']) if item.get('size') else 0,
                created_time=_parse_drive_time(item.get('createdTime')),
                marker=item.get('description') or '',
            ))
        return results

    def get_metadata(self, doc_id: str) -> DocumentMetadata:
        item = self._execute(f"Get metadata for {doc_id}", lambda drive: drive.files().get(
            fileId=doc_id,
            fields=METADATA_FIELDS,
            supportsAllDrives=True,
        ))
        return DocumentMetadata(
            id=item.get('id', doc_id),
            name=item.get('name', ''),
            mime_type=item.get('mimeType', ''),
            parents=list(item.get('parents', [])),
            marker=item.get('description') or '',
        )

    def download(self, doc_id: str) -> bytes:
        buffer = io.BytesIO()
        request = self._drive().files().get_media(fileId=doc_id, supportsAllDrives=True)
        downloader = MediaIoBaseDownload(buffer, request)
        done = False
        while not done:
            _, done = self._execute(f"Download {doc_id}",
                                    lambda _drive: _ChunkRequest(downloader))
        return buffer.getvalue()

    # =========================================================================
    # Write operations
    # =========================================================================

    def patch_marker(self, doc_id: str, marker: str) -> None:
        self._execute(f"Write marker on {doc_id}", lambda drive: drive.files().update(
            fileId=doc_id,
            body={'description': marker},
            fields='id',
            supportsAllDrives=True,
        ))

    def find_or_create_folder(self, name: str, parent_id: str) -> str:
        clean_name = sanitize_folder_name(name)
        if not clean_name:
            raise StorageError(f"Invalid folder name: {name!r}")

        query = (
            f"name='{_escape_query_value(clean_name)}' and mimeType='{FOLDER_MIME_TYPE}' "
            f"and '{_escape_query_value(parent_id)}' in parents and trashed=false"
        )
        results = self._execute(f"Search folder {clean_name}", lambda drive: drive.files().list(
            q=query,
            fields="files(id, name)",
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        ))
        items = results.get('files', [])
        if items:
            return items[0]['id']

        folder = self._execute(f"Create folder {clean_name}", lambda drive: drive.files().create(
            body={
                'name': clean_name,
                'mimeType': FOLDER_MIME_TYPE,
                'parents': [parent_id],
            },
            fields='id',
            supportsAllDrives=True,
        ))
        Sentinel.print_right(f"Created folder '{clean_name}'")
        return folder['id']

    def relocate(self, doc_id: str, from_parent_ids: Sequence[str], to_parent_id: str) -> None:
        remove = [p for p in from_parent_ids if p != to_parent_id]
        self._execute(f"Move {doc_id}", lambda drive: drive.files().update(
            fileId=doc_id,
            addParents=to_parent_id,
            removeParents=",".join(remove),
            fields='id, parents',
            supportsAllDrives=True,
        ))

    def rename(self, doc_id: str, new_name: str) -> None:
        self._execute(f"Rename {doc_id}", lambda drive: drive.files().update(
            fileId=doc_id,
            body={'name': new_name},
            fields='id, name',
            supportsAllDrives=True,
        ))


class _ChunkRequest:
    """Adapts MediaIoBaseDownload.next_chunk() to the execute() protocol."""

    def __init__(self, downloader: MediaIoBaseDownload) -> None:
        self._downloader = downloader

    def execute(self):
        return self._downloader.next_chunk()
