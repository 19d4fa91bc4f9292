"""
Share codec - Packs the roster and settings into a URL-safe token.

Token format: URL-safe base64 of compact JSON
    {"users": [...], "settings": {...}}

Decoding is forgiving by contract: a bad token means "ignore the link",
never a crash. decode() raises DecodeError, try_decode() logs and
returns None.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import parse_qs, urlencode, urlsplit
import base64
import binascii
import json
import logging

from ..engine_core.errors import DecodeError
from ..engine_core.models import Participant, Settings

logger = logging.getLogger(__name__)

SHARE_PARAM = "share"


@dataclass
class SharedState:
    """What a share token carries."""
    participants: list[Participant] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)


def encode(participants: Iterable[Participant], settings: Settings | dict[str, Any]) -> str:
    """Encode participants and settings as a share token."""
    if isinstance(settings, Settings):
        settings = settings.to_dict()
    payload = {
        "users": [p.to_dict() for p in participants],
        "settings": dict(settings),
    }
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode(token: str) -> SharedState:
    """
    Decode a share token.

    Raises:
        DecodeError: not base64, not JSON, or no participant list
    """
    if not isinstance(token, str) or not token.strip():
        raise DecodeError("Empty share token")

    token = token.strip()
    # Tolerate stripped padding and the standard alphabet
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.replace("+", "-").replace("/", "_"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Share token is not valid: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("users"), list):
        raise DecodeError("Share token has no participant list")

    try:
        participants = [Participant.from_dict(u) for u in payload["users"]]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"Share token has a malformed participant: {e}") from e

    settings = payload.get("settings")
    return SharedState(
        participants=participants,
        settings=settings if isinstance(settings, dict) else {},
    )


def try_decode(token: str) -> SharedState | None:
    """Decode a token, returning None (and logging) if it is unusable."""
    try:
        return decode(token)
    except DecodeError as e:
        logger.warning("Ignoring shared link: %s", e)
        return None


def build_share_link(base_url: str, token: str) -> str:
    """Append the token to base_url as the share query parameter."""
    separator = "&" if urlsplit(base_url).query else "?"
    return f"{base_url}{separator}{urlencode({SHARE_PARAM: token})}"


def token_from_link(url: str) -> str | None:
    """Pull the share token out of a link, if it has one."""
    values = parse_qs(urlsplit(url).query).get(SHARE_PARAM)
    return values[0] if values else None
