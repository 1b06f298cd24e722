"""Opaque keyset-pagination cursors.

Cursor format (VARCHAR PK, ordered by created_at DESC, id DESC):
  {"ts": "<created_at ISO>", "id": "<row id>"}
  Encoded as Base64 JSON string.
"""

import base64
import binascii
import json
from datetime import datetime


def cursor_encode(created_at: datetime, row_id: str) -> str:
    """Encode composite cursor from the last row of a page."""
    payload = {"ts": created_at.isoformat(), "id": row_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, row_id), or (None, None) when absent or malformed."""
    if not cursor:
        return None, None
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return str(data["ts"]), str(data["id"])
    except (binascii.Error, ValueError, KeyError, TypeError):
        return None, None
