"""Wire payloads exchanged between scanner, relay and worker.

Field names on the wire are camelCase; Python code uses the snake_case
attribute names.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class NotificationRequest(WireModel):
    """Scanner → relay: ask a human to look at one document.

    A request with new_file_name is an approval request; without it the
    message is informational (manual review needed) and has no buttons.
    """
    file_id: str = Field(alias="fileId", min_length=1)
    category: str = Field(min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    file_name: Optional[str] = Field(default=None, alias="fileName")
    new_file_name: Optional[str] = Field(default=None, alias="newFileName")

    @property
    def is_approval(self) -> bool:
        return bool(self.new_file_name)


class NotificationResponse(BaseModel):
    success: bool
    messageId: Optional[str] = None


class CommitRequest(WireModel):
    """Relay → worker: rename and move one approved document.

    Fields are optional at parse time so that CommitHandler can report the
    missing ones as InvalidRequest with a precise message.
    """
    file_id: Optional[str] = Field(default=None, alias="fileId")
    folder_name: Optional[str] = Field(default=None, alias="folderName")
    new_file_name: Optional[str] = Field(default=None, alias="newFileName")


class RejectRequest(WireModel):
    file_id: str = Field(alias="fileId", min_length=1)


class CommitResult(BaseModel):
    """Outcome of a worker call as seen by the relay."""
    ok: bool
    message: str = ""
