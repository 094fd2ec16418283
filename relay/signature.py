"""Discord interaction request verification (Ed25519 over timestamp + body)."""

import time
from typing import Callable, Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey


SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"

# Signed requests older than this are treated as replays
MAX_REQUEST_AGE = 300


class InteractionVerifier:
    """Verifies that an interaction request was signed by Discord."""

    def __init__(self, public_key_hex: str, max_age: int = MAX_REQUEST_AGE,
                 clock: Callable[[], float] = time.time) -> None:
        self._verify_key = VerifyKey(bytes.fromhex(public_key_hex))
        self.max_age = max_age
        self._clock = clock

    def verify(self, signature_hex: Optional[str], timestamp: Optional[str], body: bytes) -> bool:
        """Return True if the signature is valid and the timestamp is fresh."""
        if not signature_hex or not timestamp:
            return False
        try:
            age = abs(self._clock() - int(timestamp))
        except ValueError:
            return False
        if age > self.max_age:
            return False
        try:
            self._verify_key.verify(timestamp.encode("utf-8") + body, bytes.fromhex(signature_hex))
        except (BadSignatureError, ValueError):
            return False
        return True
