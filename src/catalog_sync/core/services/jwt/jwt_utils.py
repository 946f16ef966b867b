"""Unverified decoding of compact JWT payloads.

Tokens reaching the resolvers were already validated by the authenticator;
these helpers only read claims out of them.
"""

import base64
import binascii
import json
from typing import Any, Final

from src.catalog_sync.core.errors import MalformedToken

# ---------------- tunables ----------------
MAX_TOKEN_CHARS: Final = 16 * 1024
MAX_PAYLOAD_BYTES: Final = 64 * 1024
# base64url plus the standard alphabet; no padding
_ALLOWED: Final = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_+/."
)


def _split_compact_token(token: str) -> list[str]:
    if not token:
        raise MalformedToken("token is empty")
    if len(token) > MAX_TOKEN_CHARS:
        raise MalformedToken("token too large")
    if not _ALLOWED.issuperset(token):
        raise MalformedToken("invalid characters in token")
    segments = token.split(".")
    if len(segments) < 2:
        raise MalformedToken("token has no payload segment")
    if not segments[1]:
        raise MalformedToken("payload segment is empty")
    return segments


def _b64url_decode_unpadded(seg: str, what: str, max_bytes: int) -> bytes:
    pad = (-len(seg)) % 4
    # accept the standard alphabet as well as base64url
    seg = seg.replace("+", "-").replace("/", "_")
    try:
        raw = base64.urlsafe_b64decode((seg + "=" * pad).encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise MalformedToken(f"invalid base64url in {what}") from e
    if len(raw) > max_bytes:
        raise MalformedToken(f"{what} too large")
    return raw


def _decode_json_object(raw: bytes, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MalformedToken(f"non-UTF8 {what}") from e
    except json.JSONDecodeError as e:
        raise MalformedToken(f"invalid JSON in {what}") from e
    if not isinstance(obj, dict):
        raise MalformedToken(f"{what} must be a JSON object")
    return obj


def decode_jwt_payload(token: str) -> dict[str, Any]:
    """Return the claims of a compact token without verifying its signature."""
    segments = _split_compact_token(token)
    raw = _b64url_decode_unpadded(segments[1], "JWT payload", MAX_PAYLOAD_BYTES)
    return _decode_json_object(raw, "JWT payload")
