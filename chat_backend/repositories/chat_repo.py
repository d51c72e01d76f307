from typing import Optional

from chat_backend.core import keys
from chat_backend.core.store import Store
from chat_backend.models.chat import ChatMeta


class ChatRepository:
    def __init__(self, db: Store):
        self.db = db

    # --- metadata ---
    def get_meta(self, chat_id: str) -> Optional[ChatMeta]:
        return ChatMeta.from_hash(chat_id, self.db.hgetall(keys.chat_meta(chat_id)))

    def get_type(self, chat_id: str) -> Optional[str]:
        return self.db.hget(keys.chat_meta(chat_id), "type")

    def write_meta(self, chat_id: str, fields: dict):
        self.db.hset(keys.chat_meta(chat_id), fields)

    # --- membership ---
    def is_member(self, chat_id: str, user_id: str) -> bool:
        return self.db.sismember(keys.chat_members(chat_id), user_id)

    def get_member_ids(self, chat_id: str) -> set:
        return self.db.smembers(keys.chat_members(chat_id))

    def add_members(self, chat_id: str, *user_ids: str) -> int:
        return self.db.sadd(keys.chat_members(chat_id), *user_ids)

    def remove_member(self, chat_id: str, user_id: str) -> int:
        return self.db.srem(keys.chat_members(chat_id), user_id)

    # --- per-user indexes ---
    def get_dm_chat_id(self, user_id: str, friend_id: str) -> Optional[str]:
        return self.db.hget(keys.dms(user_id), friend_id)

    def set_dm_chat_id(self, user_id: str, friend_id: str, chat_id: str):
        self.db.hset(keys.dms(user_id), {friend_id: chat_id})

    def get_dm_index(self, user_id: str) -> dict:
        return self.db.hgetall(keys.dms(user_id))

    def add_group_to_user(self, user_id: str, chat_id: str):
        self.db.sadd(keys.groups(user_id), chat_id)

    def remove_group_from_user(self, user_id: str, chat_id: str):
        self.db.srem(keys.groups(user_id), chat_id)

    def get_group_ids(self, user_id: str) -> set:
        return self.db.smembers(keys.groups(user_id))

    # --- lifecycle ---
    def delete_chat(self, chat_id: str) -> int:
        return self.db.delete(
            keys.chat_meta(chat_id),
            keys.chat_members(chat_id),
            keys.chat_messages(chat_id),
        )
