"""Request signing for the aggregator API.

Each request carries an HMAC-SHA256 signature over
``timestamp + METHOD + request_path`` keyed by the shared secret, Base64
encoded. ``request_path`` includes the API prefix and the query string.
"""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional

from dexswap.errors import ConfigurationError


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.123Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def sign(timestamp: str, method: str, request_path: str, secret_key: str) -> str:
    """Base64 HMAC-SHA256 of the prehash string."""
    prehash = f"{timestamp}{method.upper()}{request_path}"
    digest = hmac.new(
        secret_key.encode("utf-8"),
        prehash.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class RequestSigner:
    """Builds authentication headers from the aggregator credentials."""

    def __init__(self, api_key: str, secret_key: str, passphrase: str):
        missing = [
            name
            for name, value in (
                ("API_KEY", api_key),
                ("SECRET_KEY", secret_key),
                ("PASSPHRASE", passphrase),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Aggregator credentials missing: {', '.join(missing)}")

        self._api_key = api_key
        self._secret_key = secret_key
        self._passphrase = passphrase

    def __repr__(self) -> str:
        return "RequestSigner(api_key=***)"

    @classmethod
    def from_settings(cls, settings) -> "RequestSigner":
        return cls(
            api_key=settings.api_key.get_secret_value(),
            secret_key=settings.secret_key.get_secret_value(),
            passphrase=settings.passphrase.get_secret_value(),
        )

    def headers(self, method: str, request_path: str, timestamp: Optional[str] = None) -> dict:
        """Headers for one request. A fresh timestamp is used unless one is given."""
        timestamp = timestamp or iso_timestamp()
        return {
            "Content-Type": "application/json",
            "OK-ACCESS-KEY": self._api_key,
            "OK-ACCESS-SIGN": sign(timestamp, method, request_path, self._secret_key),
            "OK-ACCESS-TIMESTAMP": timestamp,
            "OK-ACCESS-PASSPHRASE": self._passphrase,
        }
