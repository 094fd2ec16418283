"""Rendering and parsing of Discord approval messages.

The relay keeps no state between notify and decision: everything a commit
needs travels inside the rendered embed and is read back from it when a
button is clicked.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .schemas import NotificationRequest


APPROVE_ID = "DS_APPROVE"
REJECT_ID = "DS_REJECT"

COLOR_APPROVAL = 3447003
COLOR_REVIEW = 16750848

FIELD_FILE_NAME = "File Name"
FIELD_CATEGORY = "Predicted Category"
FIELD_NEW_NAME = "New File Name"
FIELD_LINK = "Google Drive Link"

FOOTER_PREFIX = "Processed by DS"
FILE_ID_PATTERN = re.compile(r"File ID: ([\w-]+)")

# Discord caps message content at 2000 characters
MAX_DETAIL_LENGTH = 1500

EPHEMERAL = 64


def drive_link(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def render_notification(request: NotificationRequest,
                        now: Optional[datetime] = None) -> Dict:
    """Build the channel message payload for a notification request."""
    now = now or datetime.now(timezone.utc)
    approval = request.is_approval
    embed = {
        "title": request.title or "New File Ready for Approval",
        "description": request.description or (
            f"File classified as **{request.category}**. "
            "Please click the button to approve."),
        "color": COLOR_APPROVAL if approval else COLOR_REVIEW,
        "fields": [
            {"name": FIELD_FILE_NAME, "value": request.file_name or "Unknown", "inline": True},
            {"name": FIELD_CATEGORY, "value": request.category, "inline": True},
            {"name": FIELD_NEW_NAME,
             "value": request.new_file_name or request.file_name or "Unknown", "inline": False},
            {"name": FIELD_LINK, "value": f"[Open File]({drive_link(request.file_id)})",
             "inline": False},
        ],
        "footer": {"text": f"{FOOTER_PREFIX} | File ID: {request.file_id}"},
        "timestamp": now.isoformat(),
    }
    payload: Dict = {"embeds": [embed]}
    if approval:
        payload["components"] = [{
            "type": 1,
            "components": [
                {"type": 2, "style": 3, "label": "承認 (Approve)", "custom_id": APPROVE_ID},
                {"type": 2, "style": 4, "label": "拒否 (Reject)", "custom_id": REJECT_ID},
            ],
        }]
    return payload


@dataclass
class ApprovalRequest:
    """Commit inputs recovered from a rendered approval message."""
    file_id: str
    category: str
    new_file_name: str
    file_name: str = ""


def _first_embed(message: Optional[Dict]) -> Optional[Dict]:
    embeds: List[Dict] = (message or {}).get("embeds") or []
    return embeds[0] if embeds else None


def extract_file_id(message: Optional[Dict]) -> Optional[str]:
    """File id from the first embed's footer, or None."""
    embed = _first_embed(message)
    if embed is None:
        return None
    match = FILE_ID_PATTERN.search((embed.get("footer") or {}).get("text", ""))
    return match.group(1) if match else None


def extract_approval(message: Optional[Dict]) -> Optional[ApprovalRequest]:
    """Read the approval fields back out of a message's first embed.

    Returns None if the message has no embed or any of id, category or new
    name can't be recovered.
    """
    embed = _first_embed(message)
    if embed is None:
        return None

    file_id = extract_file_id(message)
    fields = {f.get("name"): (f.get("value") or "").strip() for f in embed.get("fields") or []}
    category = fields.get(FIELD_CATEGORY, "")
    new_name = fields.get(FIELD_NEW_NAME, "")
    if not file_id or not category or not new_name:
        return None
    return ApprovalRequest(
        file_id=file_id,
        category=category,
        new_file_name=new_name,
        file_name=fields.get(FIELD_FILE_NAME, ""),
    )


def truncate_detail(detail: str, limit: int = MAX_DETAIL_LENGTH) -> str:
    if len(detail) <= limit:
        return detail
    return detail[:limit] + "\n...(see service logs for details)"


def in_progress_content(file_id: str, folder: str) -> str:
    return f"⏳ Approval in progress... moving file `{file_id}` to folder `{folder}`."


def success_content(folder: str) -> str:
    return f"✅ **[DS] Filed**\nThe file was moved to folder `{folder}`."


def failure_content(detail: str) -> str:
    return f"❌ **[DS] Filing error**\nWorker response:\n```\n{truncate_detail(detail)}\n```"


def rejected_content(file_id: str) -> str:
    return f"🚫 Approval rejected. File `{file_id}` needs manual review."


def ephemeral(content: str) -> Dict:
    """Interaction response visible only to the clicking user."""
    return {"type": 4, "data": {"content": content, "flags": EPHEMERAL}}
