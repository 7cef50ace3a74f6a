"""
Opaque cursors for listing games.

A cursor points at the last item of a page: (created_at, game_id). Games are listed newest first with the id as
tie-breaker, so "everything strictly after the cursor in that order" is the next page, without duplicates or gaps.
"""

import base64
import binascii
import json
from datetime import datetime
from uuid import UUID

from src.core.exceptions import InvalidCursorError


def encode_cursor(created_at: datetime, game_id: UUID) -> str:
    payload = json.dumps({"created_at": created_at.isoformat(), "game_id": str(game_id)})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, UUID]:
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        return datetime.fromisoformat(payload["created_at"]), UUID(payload["game_id"])
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as err:
        raise InvalidCursorError(f"Invalid pagination cursor: {cursor!r}") from err


def clamp_limit(limit: int, maximum: int) -> int:
    """Page size is always between 1 and `maximum`."""
    return min(max(limit, 1), maximum)
