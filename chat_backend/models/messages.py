# models/messages.py
import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


def decode_payload(raw: Any) -> Optional[dict]:
    """Decode a stored JSON object, repairing one level of re-encoding.

    Stored payloads are normally ``json.dumps(obj)``; some historical writers
    stored ``json.dumps(json.dumps(obj))``. Anything else (bad JSON, a
    non-object, triple encoding) yields ``None``. Never raises.
    """
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    value = raw
    for _ in range(2):
        if not isinstance(value, str):
            break
        try:
            value = json.loads(value)
        except (TypeError, ValueError, RecursionError):
            return None
    return value if isinstance(value, dict) else None


class Message(BaseModel):
    id: str
    sender_id: str = Field(alias="senderId")
    text: str
    timestamp: int

    class Config:
        populate_by_name = True

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v):
        # Older entries carry the timestamp as a numeric string
        if isinstance(v, bool):
            raise ValueError("timestamp must be a number")
        if isinstance(v, (str, float)):
            return int(float(v))
        return v

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Message"]:
        """Decode one stored entry, or ``None`` if it is not a message."""
        data = decode_payload(raw)
        if data is None:
            logger.warning(f"Dropping undecodable message payload: {str(raw)[:120]!r}")
            return None
        try:
            return cls.model_validate(data)
        except (ValidationError, ValueError, OverflowError):
            logger.warning(f"Dropping malformed message payload: {str(raw)[:120]!r}")
            return None
