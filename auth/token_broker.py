"""Service-account token issuance.

Builds an RS256-signed JWT assertion for a service account, exchanges it for
an OAuth bearer token and caches the token until shortly before it expires.
"""

import base64
import json
import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

import httpx
from google.auth import crypt


DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
DRIVE_SCOPES = ("https://www.googleapis.com/auth/drive",)
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ASSERTION_LIFETIME = 3600
# Tokens are reused for 55 of their 60 minutes
EXPIRY_MARGIN = 300
EXCHANGE_TIMEOUT = 10.0


class CredentialError(Exception):
    """Token issuance failed (bad key material or rejected assertion)."""
    pass


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _compact_json(obj: Dict) -> bytes:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8")


@dataclass(frozen=True)
class ServiceIdentity:
    """The claims and key material of one service account.

    Attributes:
        client_email: Service account email, used as the JWT issuer
        private_key: PEM-encoded RSA private key
        private_key_id: Key id placed in the JWT header (optional)
        token_uri: OAuth token endpoint the assertion is exchanged at
        scopes: OAuth scopes requested
    """
    client_email: str
    private_key: str
    private_key_id: Optional[str] = None
    token_uri: str = DEFAULT_TOKEN_URI
    scopes: Tuple[str, ...] = DRIVE_SCOPES

    @property
    def cache_key(self) -> str:
        return f"{self.client_email}|{' '.join(self.scopes)}"

    @classmethod
    def from_info(cls, info: Dict, scopes: Sequence[str] = DRIVE_SCOPES) -> "ServiceIdentity":
        """Build an identity from a parsed service account JSON document.

        Raises:
            CredentialError: If client_email or private_key is missing
        """
        missing = [k for k in ("client_email", "private_key") if not info.get(k)]
        if missing:
            raise CredentialError(
                f"Service account info is missing: {', '.join(missing)}"
            )
        return cls(
            client_email=info["client_email"],
            private_key=info["private_key"],
            private_key_id=info.get("private_key_id"),
            token_uri=info.get("token_uri") or DEFAULT_TOKEN_URI,
            scopes=tuple(scopes),
        )

    @classmethod
    def from_file(cls, path: str, scopes: Sequence[str] = DRIVE_SCOPES) -> "ServiceIdentity":
        """Load an identity from a service_account_key.json file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                info = json.load(f)
        except (OSError, ValueError) as e:
            raise CredentialError(f"Failed to read service account file {path}: {e}")
        return cls.from_info(info, scopes)

    @classmethod
    def from_env(cls, inline_json: str = "",
                 path: str = "service_account_key.json",
                 scopes: Sequence[str] = DRIVE_SCOPES) -> "ServiceIdentity":
        """Load from inline JSON (Docker deployments) or fall back to a file.

        Args:
            inline_json: Contents of GOOGLE_SERVICE_ACCOUNT_JSON, if set
            path: Key file used when no inline JSON is given
        """
        if inline_json:
            try:
                info = json.loads(inline_json)
            except ValueError as e:
                raise CredentialError(f"GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON: {e}")
            return cls.from_info(info, scopes)
        if not os.path.exists(path):
            raise CredentialError(
                f"No service account credentials: set GOOGLE_SERVICE_ACCOUNT_JSON or provide {path}"
            )
        return cls.from_file(path, scopes)


@dataclass
class CachedToken:
    token: str
    expires_at: float


class TokenCache:
    """Thread-safe token store keyed by identity, with TTL expiry."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: Dict[str, CachedToken] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.token

    def put(self, key: str, token: str, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CachedToken(token, self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TokenBroker:
    """Issues and caches bearer tokens for service identities.

    The broker never retries a failed exchange; callers decide. Callers that
    observe a 401 with a cached token must call invalidate() so the next
    get_token() performs a fresh exchange.
    """

    def __init__(self,
                 cache: Optional[TokenCache] = None,
                 http: Optional[httpx.Client] = None,
                 signer_factory: Optional[Callable[[ServiceIdentity], crypt.Signer]] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.cache = cache if cache is not None else TokenCache(clock)
        self._http = http
        self._signer_factory = signer_factory or _rsa_signer
        self._clock = clock

    def get_token(self, identity: ServiceIdentity) -> str:
        """Return a bearer token for the identity, exchanging if needed.

        Raises:
            CredentialError: If signing fails or the exchange is rejected
        """
        cached = self.cache.get(identity.cache_key)
        if cached:
            return cached

        assertion = self.build_assertion(identity)
        token, expires_in = self._exchange(identity, assertion)
        ttl = max(min(expires_in, ASSERTION_LIFETIME) - EXPIRY_MARGIN, 0)
        if ttl > 0:
            self.cache.put(identity.cache_key, token, ttl)
        return token

    def invalidate(self, identity: ServiceIdentity) -> None:
        """Drop the cached token after a caller saw it rejected."""
        self.cache.invalidate(identity.cache_key)

    def build_assertion(self, identity: ServiceIdentity) -> str:
        """Build the signed JWT: base64url(header).base64url(claims).base64url(sig)"""
        now = int(self._clock())
        header = {"alg": "RS256", "typ": "JWT"}
        if identity.private_key_id:
            header["kid"] = identity.private_key_id
        claims = {
            "iss": identity.client_email,
            "scope": " ".join(identity.scopes),
            "aud": identity.token_uri,
            "iat": now,
            "exp": now + ASSERTION_LIFETIME,
        }
        signing_input = f"{_b64url(_compact_json(header))}.{_b64url(_compact_json(claims))}"

        try:
            signer = self._signer_factory(identity)
            signature = signer.sign(signing_input.encode("ascii"))
        except CredentialError:
            raise
        except Exception as e:
            raise CredentialError(f"Failed to sign assertion for {identity.client_email}: {e}")

        return f"{signing_input}.{_b64url(signature)}"

    def _exchange(self, identity: ServiceIdentity, assertion: str) -> Tuple[str, int]:
        data = {"grant_type": JWT_BEARER_GRANT, "assertion": assertion}
        try:
            if self._http is not None:
                response = self._http.post(identity.token_uri, data=data,
                                           timeout=EXCHANGE_TIMEOUT)
            else:
                response = httpx.post(identity.token_uri, data=data,
                                      timeout=EXCHANGE_TIMEOUT)
        except httpx.HTTPError as e:
            raise CredentialError(f"Token exchange request failed: {e}")

        if not response.is_success:
            raise CredentialError(
                f"Token exchange rejected (HTTP {response.status_code}): {response.text[:500]}"
            )
        try:
            payload = response.json()
        except ValueError:
            raise CredentialError("Token exchange returned a non-JSON body")

        token = payload.get("access_token")
        if not token:
            raise CredentialError("Token exchange response has no access_token")
        try:
            expires_in = int(payload.get("expires_in", ASSERTION_LIFETIME))
        except (TypeError, ValueError):
            expires_in = ASSERTION_LIFETIME
        return token, expires_in


def _rsa_signer(identity: ServiceIdentity) -> crypt.Signer:
    if not identity.private_key:
        raise CredentialError(f"No private key for {identity.client_email}")
    return crypt.RSASigner.from_string(identity.private_key, identity.private_key_id)
