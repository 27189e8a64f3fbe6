"""SSE wire format.

Every frame is a single `data:` line carrying a JSON object with a `type`
key, terminated by a blank line. No `event:` or `id:` fields are sent, so
browsers deliver everything through EventSource.onmessage.
"""

import json
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder

from creatorcompass.events.types import FRAME_CONNECTED, FRAME_HEARTBEAT


def encode_frame(event: dict[str, Any]) -> str:
    """Serialize an event dict to `data: {json}\\n\\n`.

    Raises TypeError/ValueError if the payload can't be represented as JSON.
    """
    payload = json.dumps(jsonable_encoder(event), separators=(",", ":"))
    return f"data: {payload}\n\n"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def connected_frame() -> str:
    return encode_frame({"type": FRAME_CONNECTED, "timestamp": _timestamp()})


def heartbeat_frame() -> str:
    return encode_frame({"type": FRAME_HEARTBEAT, "timestamp": _timestamp()})
