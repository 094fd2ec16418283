"""NotificationRelay: the Discord-facing half of the approval workflow."""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sentinel import Sentinel
from . import messages
from .commit_client import CommitClient
from .discord import DiscordClient, NotificationError
from .interactions import Command, ComponentAction, Interaction, MalformedInteraction, Ping
from .schemas import CommitRequest, CommitResult, NotificationRequest


PONG = {"type": 1}
DEFERRED = {"type": 5}
UPDATE_MESSAGE = 7

REJECT_KEEP = "keep"
REJECT_MARK = "mark"


@dataclass
class InteractionOutcome:
    """Immediate response to Discord plus optional work to run after it is sent."""
    response: Dict
    followup: Optional[Callable[[], None]] = None


class NotificationRelay:
    """Posts approval requests and turns button clicks into commits.

    Every followup ends in an edit of the original message, whether the
    worker call succeeded, failed, or raised.
    """

    def __init__(self, discord: DiscordClient, worker: CommitClient,
                 channel_id: str, reject_policy: str = REJECT_KEEP) -> None:
        self.discord = discord
        self.worker = worker
        self.channel_id = channel_id
        self.reject_policy = reject_policy

    def notify(self, request: NotificationRequest) -> str:
        """Post an approval (or manual review) message and return its id.

        Raises:
            NotificationError: If Discord rejects the post
        """
        message_id = self.discord.post_message(self.channel_id, messages.render_notification(request))
        Sentinel.print_right(f"Notified {request.file_id} ({request.category}) as message {message_id}")
        return message_id

    def handle_interaction(self, interaction: Interaction) -> InteractionOutcome:
        if isinstance(interaction, Ping):
            return InteractionOutcome(PONG)
        if isinstance(interaction, ComponentAction):
            return self._on_component(interaction)
        if isinstance(interaction, Command):
            return self._on_command(interaction)
        raise MalformedInteraction(f"Unhandled interaction: {interaction!r}")

    def _on_component(self, action: ComponentAction) -> InteractionOutcome:
        if action.custom_id not in (messages.APPROVE_ID, messages.REJECT_ID):
            return InteractionOutcome(messages.ephemeral("❌ Error: unrecognized button."))

        embeds = (action.message or {}).get("embeds") or []
        if action.custom_id == messages.REJECT_ID:
            file_id = messages.extract_file_id(action.message)
            if file_id is None:
                return InteractionOutcome(messages.ephemeral(
                    "❌ Error: could not read file ID from this message."))
            Sentinel.print_right(f"Rejected {file_id}")
            response = {"type": UPDATE_MESSAGE, "data": {
                "content": messages.rejected_content(file_id),
                "embeds": embeds,
                "components": [],
            }}
            followup = None
            if self.reject_policy == REJECT_MARK:
                followup = lambda: self._mark_rejected(file_id)
            return InteractionOutcome(response, followup)

        approval = messages.extract_approval(action.message)
        if approval is None:
            return InteractionOutcome(messages.ephemeral(
                "❌ Error: could not read file ID, category or new name from this message."))

        Sentinel.print_right(f"Approved {approval.file_id} → {approval.category}/{approval.new_file_name}")
        request = CommitRequest(file_id=approval.file_id, folder_name=approval.category,
                                new_file_name=approval.new_file_name)
        response = {"type": UPDATE_MESSAGE, "data": {
            "content": messages.in_progress_content(approval.file_id, approval.category),
            "embeds": embeds,
            "components": [],
        }}
        return InteractionOutcome(response, lambda: self._run_commit(action.token, request, embeds))

    def _on_command(self, command: Command) -> InteractionOutcome:
        if command.name == "exec":
            return InteractionOutcome(DEFERRED, lambda: self._run_scan(command.token))

        if command.name == "approve":
            request = CommitRequest(
                file_id=command.options.get("fileid") or None,
                folder_name=command.options.get("folder") or None,
                new_file_name=command.options.get("name") or None,
            )
            if not (request.file_id and request.folder_name and request.new_file_name):
                return InteractionOutcome(messages.ephemeral(
                    "❌ Error: fileid, folder and name are all required."))
            return InteractionOutcome(DEFERRED, lambda: self._run_commit(command.token, request))

        return InteractionOutcome(messages.ephemeral(f"❌ Error: unknown command `{command.name}`."))

    def _run_commit(self, token: str, request: CommitRequest,
                    embeds: Optional[list] = None) -> None:
        try:
            result = self.worker.commit(request)
        except Exception as e:
            result = CommitResult(ok=False, message=f"{type(e).__name__}: {e}")

        if result.ok:
            content = messages.success_content(request.folder_name)
        else:
            Sentinel.print_right(f"[red]Commit of {request.file_id} failed: {result.message}[/red]")
            content = messages.failure_content(result.message)
        payload: Dict = {"content": content}
        if embeds:
            payload["embeds"] = embeds
        self._edit(token, payload)

    def _run_scan(self, token: str) -> None:
        try:
            result = self.worker.scan()
        except Exception as e:
            result = CommitResult(ok=False, message=f"{type(e).__name__}: {e}")
        if result.ok:
            content = f"✅ Inbox check finished: {result.message}"
        else:
            content = f"❌ Inbox check failed:\n```\n{messages.truncate_detail(result.message)}\n```"
        self._edit(token, {"content": content})

    def _mark_rejected(self, file_id: str) -> None:
        result = self.worker.reject(file_id)
        if not result.ok:
            Sentinel.warn(f"Could not mark {file_id} as rejected: {result.message}")

    def _edit(self, token: str, payload: Dict) -> None:
        try:
            self.discord.edit_original(token, payload)
        except NotificationError as e:
            Sentinel.print_right(f"[red]Failed to update Discord message: {e}[/red]")
