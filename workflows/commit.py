"""Commit an approved document: rename it and move it to its category folder."""

from typing import TYPE_CHECKING, Optional

from relay.schemas import CommitRequest, CommitResult
from sentinel import Sentinel
from storage import StorageGateway, StorageError, create_gateway
from .markers import Marker

if TYPE_CHECKING:
    from auth import TokenBroker
    from sentinel.config import Settings


class InvalidRequest(Exception):
    """An inbound payload is missing required fields."""
    pass


class CommitFailure(Exception):
    """The document could not be moved to its destination."""
    pass


class CommitHandler:
    """Applies an approved proposal to the store.

    Parents are re-read at commit time, so a document moved since the scan
    is still moved correctly. Two racing commits for the same document each
    compute their own "from" set; the second one is a harmless no-op or a
    reported failure, never a crash.
    """

    def __init__(self, gateway: StorageGateway, destination_root_id: str) -> None:
        self.gateway = gateway
        self.destination_root_id = destination_root_id

    def commit(self, request: CommitRequest) -> CommitResult:
        """Rename and relocate one document.

        Raises:
            InvalidRequest: If file id, folder name or new file name is missing
            CommitFailure: If the metadata read, folder lookup or move fails
        """
        missing = [wire for attr, wire in (("file_id", "fileId"),
                                           ("folder_name", "folderName"),
                                           ("new_file_name", "newFileName"))
                   if not getattr(request, attr)]
        if missing:
            raise InvalidRequest(f"Missing required fields: {', '.join(missing)}")

        file_id = request.file_id
        folder_name = request.folder_name
        new_name = request.new_file_name
        Sentinel.print_right(f"Commit {file_id}: '{new_name}' → '{folder_name}'")

        try:
            metadata = self.gateway.get_metadata(file_id)
            folder_id = self.gateway.find_or_create_folder(folder_name, self.destination_root_id)
        except StorageError as e:
            raise CommitFailure(f"Could not prepare move of {file_id}: {e} {e.body}".strip())

        try:
            self.gateway.rename(file_id, new_name)
        except StorageError as e:
            Sentinel.warn(f"Rename of {file_id} failed, moving anyway: {e}")

        try:
            self.gateway.relocate(file_id, metadata.parents, folder_id)
        except StorageError as e:
            raise CommitFailure(f"Move of {file_id} failed: {e} {e.body}".strip())

        try:
            self.gateway.patch_marker(file_id, "")
        except StorageError as e:
            Sentinel.warn(f"Failed to clear marker on {file_id}: {e}")

        message = f"Success: moved '{new_name}' to '{folder_name}'"
        Sentinel.print_right(f"[green]✓ {message}[/green]")
        return CommitResult(ok=True, message=message)

    def reject(self, file_id: str) -> CommitResult:
        """Mark a rejected document so the scanner never proposes it again.

        The marker write is best-effort; the result reports whether it stuck.
        """
        if not file_id:
            raise InvalidRequest("Missing required fields: fileId")
        try:
            self.gateway.patch_marker(file_id, Marker.rejected().format())
        except StorageError as e:
            Sentinel.warn(f"Failed to mark {file_id} as rejected: {e}")
            return CommitResult(ok=False, message=f"Failed to mark rejected: {e}")
        return CommitResult(ok=True, message=f"Marked {file_id} as rejected")


def create_commit_handler(settings: "Settings",
                          broker: Optional["TokenBroker"] = None) -> CommitHandler:
    """Wire a CommitHandler from settings.

    Raises:
        ConfigError: If DESTINATION_ROOT_ID is missing
        CredentialError: If service account credentials can't be loaded
    """
    settings.require("destination_root_id")
    return CommitHandler(create_gateway(settings, broker), settings.destination_root_id)
