"""Tests for NotificationRelay decision handling and the worker client."""

import httpx
import pytest

from relay import (
    Command,
    CommitClient,
    CommitRequest,
    CommitResult,
    ComponentAction,
    MalformedInteraction,
    NotificationError,
    NotificationRelay,
    NotificationRequest,
    Ping,
    normalize_commit_response,
    parse_interaction,
)
from relay.messages import APPROVE_ID, REJECT_ID, render_notification


FINAL_NAME = "2024-03-01_電気代_請求書.pdf"


class FakeDiscord:
    def __init__(self, edit_error=None):
        self.posted = []
        self.edits = []
        self.edit_error = edit_error

    def post_message(self, channel_id, payload):
        self.posted.append((channel_id, payload))
        return "9001"

    def edit_original(self, token, payload):
        self.edits.append((token, payload))
        if self.edit_error:
            raise self.edit_error


class FakeWorker:
    def __init__(self, result=None, error=None):
        self.result = result or CommitResult(ok=True, message=f"Success: moved '{FINAL_NAME}'")
        self.error = error
        self.commits = []
        self.rejects = []
        self.scans = 0

    def commit(self, request):
        self.commits.append(request)
        if self.error:
            raise self.error
        return self.result

    def scan(self):
        self.scans += 1
        return CommitResult(ok=True, message="3 listed, 1 proposed")

    def reject(self, file_id):
        self.rejects.append(file_id)
        return CommitResult(ok=True, message="Marked")


def rendered_message():
    return render_notification(NotificationRequest(
        fileId="f1", category="請求書・領収書", fileName="scan_001.pdf", newFileName=FINAL_NAME,
    ))


def make_relay(worker=None, discord=None, reject_policy="keep"):
    return NotificationRelay(discord or FakeDiscord(), worker or FakeWorker(), "chan-1",
                             reject_policy=reject_policy)


class TestNotify:

    def test_posts_to_channel(self):
        discord = FakeDiscord()
        relay = make_relay(discord=discord)
        assert relay.notify(NotificationRequest(fileId="f1", category="公共料金")) == "9001"
        assert discord.posted[0][0] == "chan-1"


class TestApprove:

    def test_buttons_removed_in_same_response(self):
        worker = FakeWorker()
        outcome = make_relay(worker).handle_interaction(
            ComponentAction(custom_id=APPROVE_ID, token="tok", message=rendered_message()))

        assert outcome.response["type"] == 7
        assert outcome.response["data"]["components"] == []
        assert worker.commits == []
        assert outcome.followup is not None

    def test_commit_uses_fields_from_message(self):
        worker = FakeWorker()
        discord = FakeDiscord()
        outcome = make_relay(worker, discord).handle_interaction(
            ComponentAction(custom_id=APPROVE_ID, token="tok", message=rendered_message()))
        outcome.followup()

        [request] = worker.commits
        assert request.file_id == "f1"
        assert request.folder_name == "請求書・領収書"
        assert request.new_file_name == FINAL_NAME
        [(token, payload)] = discord.edits
        assert token == "tok"
        assert "請求書・領収書" in payload["content"]
        assert payload["content"].startswith("✅")

    def test_failure_body_shown_truncated(self):
        worker = FakeWorker(result=CommitResult(ok=False, message="Folder error " + "x" * 3000))
        discord = FakeDiscord()
        outcome = make_relay(worker, discord).handle_interaction(
            ComponentAction(custom_id=APPROVE_ID, token="tok", message=rendered_message()))
        outcome.followup()

        content = discord.edits[0][1]["content"]
        assert content.startswith("❌")
        assert "Folder error" in content
        assert "see service logs" in content
        assert len(content) < 2000

    def test_worker_exception_still_edits(self):
        discord = FakeDiscord()
        outcome = make_relay(FakeWorker(error=RuntimeError("boom")), discord).handle_interaction(
            ComponentAction(custom_id=APPROVE_ID, token="tok", message=rendered_message()))
        outcome.followup()
        assert "boom" in discord.edits[0][1]["content"]

    def test_edit_failure_is_not_raised(self):
        discord = FakeDiscord(edit_error=NotificationError("Editing message failed (HTTP 404)"))
        outcome = make_relay(discord=discord).handle_interaction(
            ComponentAction(custom_id=APPROVE_ID, token="tok", message=rendered_message()))
        outcome.followup()
        assert len(discord.edits) == 1

    def test_unreadable_message_is_ephemeral_error(self):
        worker = FakeWorker()
        outcome = make_relay(worker).handle_interaction(
            ComponentAction(custom_id=APPROVE_ID, token="tok", message={"embeds": []}))
        assert outcome.response["type"] == 4
        assert outcome.response["data"]["flags"] == 64
        assert outcome.followup is None


class TestReject:

    def test_keep_policy_has_no_storage_effect(self):
        worker = FakeWorker()
        outcome = make_relay(worker).handle_interaction(
            ComponentAction(custom_id=REJECT_ID, token="tok", message=rendered_message()))

        assert outcome.response["type"] == 7
        assert outcome.response["data"]["components"] == []
        assert "rejected" in outcome.response["data"]["content"]
        assert outcome.followup is None
        assert worker.commits == []

    def test_footer_file_id_is_enough(self):
        """Reject only needs the file id, not the category or new name."""
        message = rendered_message()
        message["embeds"][0]["fields"] = []
        worker = FakeWorker()
        outcome = make_relay(worker, reject_policy="mark").handle_interaction(
            ComponentAction(custom_id=REJECT_ID, token="tok", message=message))

        assert outcome.response["type"] == 7
        assert outcome.response["data"]["components"] == []
        outcome.followup()
        assert worker.rejects == ["f1"]

    def test_missing_file_id_is_ephemeral_error(self):
        outcome = make_relay().handle_interaction(
            ComponentAction(custom_id=REJECT_ID, token="tok", message={"embeds": [{}]}))
        assert outcome.response["type"] == 4
        assert outcome.followup is None

    def test_mark_policy_calls_worker(self):
        worker = FakeWorker()
        outcome = make_relay(worker, reject_policy="mark").handle_interaction(
            ComponentAction(custom_id=REJECT_ID, token="tok", message=rendered_message()))
        outcome.followup()
        assert worker.rejects == ["f1"]


class TestCommands:

    def test_approve_command_defers_and_commits(self):
        worker = FakeWorker()
        discord = FakeDiscord()
        outcome = make_relay(worker, discord).handle_interaction(Command(
            name="approve", token="tok",
            options={"fileid": "f7", "folder": "仕事関連", "name": "2024-02-02_契約書.pdf"}))

        assert outcome.response == {"type": 5}
        outcome.followup()
        assert worker.commits[0].file_id == "f7"
        assert len(discord.edits) == 1

    def test_approve_command_missing_option(self):
        outcome = make_relay().handle_interaction(Command(
            name="approve", token="tok", options={"fileid": "f7", "folder": "仕事関連"}))
        assert outcome.response["type"] == 4
        assert outcome.followup is None

    def test_exec_triggers_scan(self):
        worker = FakeWorker()
        discord = FakeDiscord()
        outcome = make_relay(worker, discord).handle_interaction(Command(name="exec", token="tok"))
        assert outcome.response == {"type": 5}
        outcome.followup()
        assert worker.scans == 1
        assert "1 proposed" in discord.edits[0][1]["content"]

    def test_ping(self):
        assert make_relay().handle_interaction(Ping()).response == {"type": 1}


class TestParseInteraction:

    def test_component(self):
        action = parse_interaction({"type": 3, "token": "t", "data": {"custom_id": APPROVE_ID},
                                    "message": {"embeds": []}})
        assert isinstance(action, ComponentAction)
        assert action.custom_id == APPROVE_ID

    def test_command_options(self):
        command = parse_interaction({"type": 2, "token": "t", "data": {
            "name": "approve",
            "options": [{"name": "fileid", "value": " f1 "}, {"name": "folder", "value": "その他"}],
        }})
        assert command.options == {"fileid": "f1", "folder": "その他"}

    @pytest.mark.parametrize("payload", [
        [],
        {"type": 9, "token": "t"},
        {"type": 3, "data": {"custom_id": "x"}},
        {"type": 2, "token": "t", "data": {}},
    ])
    def test_malformed(self, payload):
        with pytest.raises(MalformedInteraction):
            parse_interaction(payload)


class TestCommitClient:

    def client(self, handler):
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return CommitClient("https://worker.test/commit", "secret",
                            scan_url="https://worker.test/scan", http=http)

    def test_structured_response(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True, "message": "Success: moved"})

        result = self.client(handler).commit(CommitRequest(
            file_id="f1", folder_name="その他", new_file_name="a.pdf"))
        assert result.ok
        assert seen[0].headers["X-API-Key"] == "secret"
        assert b'"fileId":"f1"' in seen[0].content.replace(b" ", b"")

    def test_transport_error_is_not_ok(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        result = self.client(handler).scan()
        assert not result.ok
        assert "connection refused" in result.message

    def test_reject_url_unset(self):
        result = self.client(lambda r: httpx.Response(200)).reject("f1")
        assert not result.ok


class TestNormalize:

    def test_legacy_success_text(self):
        assert normalize_commit_response(httpx.Response(200, text="Success: File moved")).ok

    def test_legacy_error_text(self):
        result = normalize_commit_response(httpx.Response(200, text="Error: Folder not found"))
        assert not result.ok
        assert result.message == "Error: Folder not found"

    def test_structured_failure(self):
        result = normalize_commit_response(
            httpx.Response(502, json={"ok": False, "message": "Move of f1 failed"}))
        assert not result.ok
        assert result.message == "Move of f1 failed"

    def test_empty_body(self):
        result = normalize_commit_response(httpx.Response(500))
        assert not result.ok
        assert "500" in result.message
