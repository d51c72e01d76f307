from chat_backend.core import keys
from chat_backend.core.store import Store
from chat_backend.models.messages import Message


class MessageRepository:
    def __init__(self, db: Store):
        self.db = db

    def append(self, chat_id: str, message: Message):
        self.db.zadd(keys.chat_messages(chat_id), message.timestamp, message.to_json())

    def set_last_message(self, chat_id: str, message: Message):
        # Denormalized hint; updatedAt doubles as the group list sort key
        self.db.hset(keys.chat_meta(chat_id), {
            "lastMessage": message.to_json(),
            "updatedAt": message.timestamp,
        })

    def get_range(self, chat_id: str, start: int, end: int) -> list:
        """Raw entries, newest first."""
        return self.db.zrevrange(keys.chat_messages(chat_id), start, end)
