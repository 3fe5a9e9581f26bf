"""
Verification code generator.

Codes are bound to a ticket id and a coarse time bucket (one day by default):

    VER-<ticketId>-<bucketMs>             public scheme, no secret
    VER-<ticketId>-<bucketMs>-<hmac32>    HMAC-SHA256 signed scheme

The public scheme can be recomputed by anyone who knows a ticket id, so it
only detects accidental corruption. Deployments set TICKET_SECRET to get the
signed scheme.
"""
from __future__ import annotations

import hashlib
import hmac
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

PREFIX = "VER-"
DEFAULT_BUCKET_SECONDS = 86400
_SIGNATURE_LEN = 32

# Millisecond stamps fit in 15 ASCII digits until the year 33658
_BUCKET_RE = re.compile(r"[0-9]{1,15}")


@dataclass(frozen=True)
class CodePolicy:
    """How codes are produced and checked; passed explicitly to services."""
    secret: Optional[bytes] = None
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS

    @property
    def signed(self) -> bool:
        return bool(self.secret)


def bucket_start(as_of: datetime, bucket_seconds: int = DEFAULT_BUCKET_SECONDS) -> int:
    """Start of the bucket containing `as_of`, in UTC epoch milliseconds."""
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    bucket_ms = bucket_seconds * 1000
    ms = int(as_of.timestamp() * 1000)
    return ms - ms % bucket_ms


def _signature(secret: bytes, ticket_id: str, bucket_ms: int) -> str:
    mac = hmac.new(secret, f"{ticket_id}:{bucket_ms}".encode("utf-8"), hashlib.sha256)
    return mac.hexdigest()[:_SIGNATURE_LEN]


def _code_for_bucket(ticket_id: str, bucket_ms: int, secret: Optional[bytes]) -> str:
    code = f"{PREFIX}{ticket_id}-{bucket_ms}"
    if secret:
        code = f"{code}-{_signature(secret, ticket_id, bucket_ms)}"
    return code


def generate(
    ticket_id: str,
    as_of: datetime,
    *,
    secret: Optional[bytes] = None,
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
) -> str:
    """Deterministic code for `ticket_id` in the bucket containing `as_of`."""
    return _code_for_bucket(ticket_id, bucket_start(as_of, bucket_seconds), secret)


def declared_bucket(ticket_id: str, presented_code: str) -> Optional[int]:
    """Bucket timestamp carried inside a code, or None if it does not parse."""
    head = f"{PREFIX}{ticket_id}-"
    if not presented_code.startswith(head):
        return None
    bucket_part = presented_code[len(head):].split("-", 1)[0]
    if not _BUCKET_RE.fullmatch(bucket_part):
        return None
    return int(bucket_part)


def verify(
    ticket_id: str,
    presented_code: str,
    *,
    secret: Optional[bytes] = None,
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
    as_of: Optional[datetime] = None,
) -> bool:
    """
    Check `presented_code` against the code expected for `ticket_id`.

    The expected code is computed for the bucket of `as_of` when given,
    otherwise for the bucket the code itself declares (tickets are issued at
    confirmation and scanned days later). A declared bucket that is not
    aligned to `bucket_seconds` never matches. Comparison is constant-time.
    """
    if not isinstance(ticket_id, str) or not isinstance(presented_code, str) or not ticket_id:
        return False
    # Issued codes are pure ASCII
    if not presented_code.isascii():
        return False

    if as_of is not None:
        bucket_ms = bucket_start(as_of, bucket_seconds)
    else:
        bucket_ms = declared_bucket(ticket_id, presented_code)
        if bucket_ms is None:
            return False

    expected = _code_for_bucket(ticket_id, bucket_ms, secret)
    if bucket_ms % (bucket_seconds * 1000):
        expected = ""
    return hmac.compare_digest(expected.encode("utf-8"), presented_code.encode("utf-8"))
