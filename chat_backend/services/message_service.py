import logging
import time
import uuid
from typing import Callable, Optional

from chat_backend.core.exceptions import ValidationError
from chat_backend.core.store import Store
from chat_backend.models.messages import Message
from chat_backend.repositories.message_repo import MessageRepository

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class MessageService:
    """Append-only per-chat message log.

    Membership and friendship checks belong to the caller (ChatService).
    """

    def __init__(self, db: Store, clock: Callable[[], int] = now_ms):
        self.repo = MessageRepository(db)
        self.clock = clock

    def append(self, chat_id: str, sender_id: str, text: str) -> Message:
        if not isinstance(text, str) or not text:
            raise ValidationError("text is required")

        message = Message(id=str(uuid.uuid4()), sender_id=sender_id, text=text, timestamp=self.clock())

        # Log first, then the cache; readers may briefly see one without the other
        self.repo.append(chat_id, message)
        self.repo.set_last_message(chat_id, message)
        logger.info(f"Message {message.id} appended to chat {chat_id}")
        return message

    def range(self, chat_id: str, start: int, end: int) -> list[Message]:
        """Messages newest first over rank ``start..end`` (negative = from the end).

        Entries that fail to decode are skipped instead of failing the page.
        """
        messages = []
        for raw in self.repo.get_range(chat_id, start, end):
            message = Message.from_raw(raw)
            if message is not None:
                messages.append(message)
        return messages

    def latest(self, chat_id: str) -> Optional[Message]:
        page = self.range(chat_id, 0, 0)
        return page[0] if page else None
