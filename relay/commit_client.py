"""Relay-side client for the worker's commit, scan and reject endpoints."""

from typing import Dict, Optional

import httpx

from .schemas import CommitRequest, CommitResult, RejectRequest


COMMIT_TIMEOUT = 30.0
CONTROL_TIMEOUT = 10.0
SCAN_TIMEOUT = 300.0


def normalize_commit_response(response: httpx.Response) -> CommitResult:
    """Map a worker response onto CommitResult.

    Structured {ok, message} bodies are used as-is. Anything else is the
    older plain-text contract, where "Success" anywhere in the body means
    the move went through.
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and "ok" in body:
        return CommitResult(ok=bool(body["ok"]), message=str(body.get("message") or ""))

    text = response.text
    if body is not None and not isinstance(body, str):
        text = str(body)
    ok = "Success" in text
    if not ok and not text:
        text = f"HTTP {response.status_code} with empty body"
    return CommitResult(ok=ok, message=text)


class CommitClient:
    """Calls the worker on behalf of Discord interactions.

    Never raises: transport errors come back as CommitResult(ok=False) so the
    relay always has something to show the user.
    """

    def __init__(self, commit_url: str, api_key: str, scan_url: str = "",
                 reject_url: str = "", http: Optional[httpx.Client] = None) -> None:
        self.commit_url = commit_url
        self.scan_url = scan_url
        self.reject_url = reject_url
        self.api_key = api_key
        self._http = http or httpx.Client()

    def _post(self, url: str, payload: Dict, timeout: float) -> CommitResult:
        if not url:
            return CommitResult(ok=False, message="Worker endpoint is not configured")
        try:
            response = self._http.post(url, json=payload, timeout=timeout,
                                       headers={"X-API-Key": self.api_key})
        except httpx.HTTPError as e:
            return CommitResult(ok=False, message=f"{type(e).__name__}: {e}")
        return normalize_commit_response(response)

    def commit(self, request: CommitRequest) -> CommitResult:
        return self._post(self.commit_url, request.to_wire(), COMMIT_TIMEOUT)

    def scan(self) -> CommitResult:
        """Trigger an inbox scan; the message carries the run summary."""
        return self._post(self.scan_url, {}, SCAN_TIMEOUT)

    def reject(self, file_id: str) -> CommitResult:
        return self._post(self.reject_url, RejectRequest(file_id=file_id).to_wire(), CONTROL_TIMEOUT)
