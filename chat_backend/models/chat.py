from typing import Optional

from pydantic import BaseModel

from .enums import ChatType


def to_millis(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


class ChatMeta(BaseModel):
    """Parsed ``chat:{id}:meta`` hash. ``last_message`` stays raw; it is a hint."""
    chat_id: str
    type: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    created_by: Optional[str] = None
    user1: Optional[str] = None
    user2: Optional[str] = None
    last_message: Optional[str] = None

    @property
    def is_group(self) -> bool:
        return self.type == ChatType.GROUP.value

    @property
    def is_dm(self) -> bool:
        return self.type == ChatType.DM.value

    @classmethod
    def from_hash(cls, chat_id: str, raw: dict) -> Optional["ChatMeta"]:
        if not raw:
            return None
        return cls(
            chat_id=chat_id,
            type=raw.get("type"),
            name=raw.get("name"),
            created_at=to_millis(raw.get("createdAt")),
            updated_at=to_millis(raw.get("updatedAt")),
            created_by=raw.get("createdBy"),
            user1=raw.get("user1"),
            user2=raw.get("user2"),
            last_message=raw.get("lastMessage"),
        )
