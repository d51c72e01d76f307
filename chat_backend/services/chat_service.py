import logging
import uuid
from typing import Callable, Iterable, Optional

from chat_backend.core.exceptions import (
    ChatError, Conflict, Forbidden, InvalidOperation, NotFound, Unauthorized, ValidationError,
)
from chat_backend.core.store import Store, members_of
from chat_backend.models.chat import ChatMeta, to_millis
from chat_backend.models.enums import ChatType
from chat_backend.models.messages import Message, decode_payload
from chat_backend.models.users import UserProfile
from chat_backend.repositories.chat_repo import ChatRepository
from chat_backend.repositories.friend_repo import FriendRepository
from chat_backend.repositories.user_repo import UserRepository
from chat_backend.services.message_service import MessageService, now_ms
from chat_backend.services.notification_service import Notifier

logger = logging.getLogger(__name__)

MIN_GROUP_MEMBERS = 3


class ChatService:
    """DM identity, group membership and chat lifecycle.

    Every operation validates first and writes after. The write sequences
    span several keys and are not atomic; readers can observe them half
    done, and a concurrent duplicate DM can exist. Index repairs happen on
    read where they are cheap (see ``get_or_create_dm``).
    """

    def __init__(self, db: Store, notifier: Notifier, clock: Callable[[], int] = now_ms):
        self.repo = ChatRepository(db)
        self.friend_repo = FriendRepository(db)
        self.user_repo = UserRepository(db)
        self.messages = MessageService(db, clock=clock)
        self.notifier = notifier
        self.clock = clock

    # ------------------------------------------------------------------ helpers

    def _require_meta(self, chat_id: str) -> ChatMeta:
        meta = self.repo.get_meta(chat_id)
        if meta is None:
            raise NotFound("Chat not found")
        return meta

    @staticmethod
    def _require_group(meta: ChatMeta):
        if not meta.is_group:
            raise Conflict("Chat is not a group")

    @staticmethod
    def _check_type(chat_type: Optional[str], expected_type: Optional[ChatType]):
        if expected_type is not None and chat_type != expected_type.value:
            raise Conflict(f"Chat type must be {expected_type.value}")

    def _touch(self, chat_id: str) -> int:
        updated_at = self.clock()
        self.repo.write_meta(chat_id, {"updatedAt": updated_at})
        return updated_at

    def _profile_or_stub(self, user_id: str) -> dict:
        try:
            profile = self.user_repo.get_by_id(user_id)
        except ChatError as exc:
            logger.warning(f"Could not load profile {user_id}: {exc}")
            profile = None
        return profile.model_dump() if profile else UserProfile(id=user_id).model_dump()

    def _cleanup_if_empty(self, chat_id: str) -> bool:
        """Delete a group's keys once nobody is left in it."""
        try:
            if self.repo.get_member_ids(chat_id):
                return False
            self.repo.delete_chat(chat_id)
        except ChatError as exc:
            logger.error(f"Failed to clean up chat {chat_id}: {exc}")
            return False
        logger.info(f"Chat {chat_id} deleted after last member left")
        return True

    # ---------------------------------------------------------------------- DMs

    def get_or_create_dm(self, caller_id: str, other_id: str) -> tuple[str, bool]:
        """Return ``(chat_id, created)`` for the caller/other pair."""
        if not self.friend_repo.are_friends(caller_id, other_id):
            raise Unauthorized("You can only message friends")

        own_id = self.repo.get_dm_chat_id(caller_id, other_id)
        mirror_id = self.repo.get_dm_chat_id(other_id, caller_id)

        if own_id or mirror_id:
            # Repair on read: a half-written pair is completed from the side
            # that exists, and two racing creations converge on the smaller id
            chat_id = min(i for i in (own_id, mirror_id) if i)
            if own_id != chat_id:
                self.repo.set_dm_chat_id(caller_id, other_id, chat_id)
            if mirror_id != chat_id:
                self.repo.set_dm_chat_id(other_id, caller_id, chat_id)
            return chat_id, False

        chat_id = str(uuid.uuid4())
        created_at = self.clock()
        self.repo.set_dm_chat_id(caller_id, other_id, chat_id)
        self.repo.set_dm_chat_id(other_id, caller_id, chat_id)
        self.repo.add_members(chat_id, caller_id, other_id)
        self.repo.write_meta(chat_id, {
            "type": ChatType.DM.value,
            "createdAt": created_at,
            "updatedAt": created_at,
            "user1": caller_id,
            "user2": other_id,
        })
        logger.info(f"DM {chat_id} created between {caller_id} and {other_id}")

        self.notifier.chat_created(other_id, chat_id, self._profile_or_stub(caller_id))
        return chat_id, True

    def list_dms_for_user(self, user_id: str) -> list[dict]:
        entries = []
        for friend_id, chat_id in sorted(self.repo.get_dm_index(user_id).items()):
            friend = self.user_repo.get_by_id(friend_id)
            entries.append({
                "friendId": friend_id,
                "chatId": chat_id,
                "friend": friend.model_dump() if friend else None,
            })
        return entries

    # ------------------------------------------------------------------- groups

    def create_group(self, creator_id: str, name: Optional[str], member_ids: Iterable[str]) -> str:
        members = []
        for member_id in list(member_ids or []) + [creator_id]:
            if member_id and member_id not in members:
                members.append(member_id)

        if len(members) < MIN_GROUP_MEMBERS:
            raise InvalidOperation("Group chat requires more than 2 members")

        name = name.strip() if isinstance(name, str) else None
        chat_id = str(uuid.uuid4())
        created_at = self.clock()

        self.repo.add_members(chat_id, *members)
        self.repo.write_meta(chat_id, {
            "type": ChatType.GROUP.value,
            "name": name or None,
            "createdAt": created_at,
            "updatedAt": created_at,
            "createdBy": creator_id,
        })
        for member_id in members:
            self.repo.add_group_to_user(member_id, chat_id)
        logger.info(f"Group {chat_id} created by {creator_id} with {len(members)} members")

        for member_id in members:
            self.notifier.group_added(member_id, chat_id, name)
        return chat_id

    def add_member(self, actor_id: str, chat_id: str, user_id: str) -> dict:
        meta = self._require_meta(chat_id)
        self._require_group(meta)

        if not self.repo.is_member(chat_id, actor_id):
            raise Forbidden("Not a member of this group")

        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")

        # sadd tells us atomically whether the user was already there
        if self.repo.add_members(chat_id, user_id) == 0:
            raise Conflict("User is already a member")

        self.repo.add_group_to_user(user_id, chat_id)
        self._touch(chat_id)
        logger.info(f"User {user_id} added to group {chat_id} by {actor_id}")

        self.notifier.group_added(user_id, chat_id, meta.name)
        return user.model_dump()

    def remove_member(self, actor_id: str, chat_id: str, user_id: str) -> dict:
        meta = self._require_meta(chat_id)
        self._require_group(meta)

        if not meta.created_by or meta.created_by != actor_id:
            raise Forbidden("Only the group creator can remove members")

        if self.repo.remove_member(chat_id, user_id) == 0:
            raise NotFound("User not found in group")

        self.repo.remove_group_from_user(user_id, chat_id)
        self._touch(chat_id)
        logger.info(f"User {user_id} removed from group {chat_id} by {actor_id}")

        self.notifier.group_removed(user_id, chat_id)
        self._cleanup_if_empty(chat_id)
        return self._profile_or_stub(user_id)

    def leave(self, caller_id: str, chat_id: str) -> dict:
        meta = self._require_meta(chat_id)
        self._require_group(meta)

        if not self.repo.is_member(chat_id, caller_id):
            raise Forbidden("Not a member of this group")

        self.repo.remove_member(chat_id, caller_id)
        self.repo.remove_group_from_user(caller_id, chat_id)
        self._touch(chat_id)
        logger.info(f"User {caller_id} left group {chat_id}")

        deleted = self._cleanup_if_empty(chat_id)
        return {"chatId": chat_id, "left": True, "deleted": deleted}

    def update_group_meta(self, actor_id: str, chat_id: str, name: str) -> dict:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required")

        meta = self._require_meta(chat_id)
        self._require_group(meta)

        if meta.created_by != actor_id:
            raise Forbidden("Only the group creator can update the group")

        name = name.strip()
        updated_at = self.clock()
        self.repo.write_meta(chat_id, {"name": name, "updatedAt": updated_at})
        return {"chatId": chat_id, "type": meta.type, "name": name, "updatedAt": updated_at}

    def list_groups_for_user(self, user_id: str) -> list[dict]:
        entries = []
        for chat_id in self.repo.get_group_ids(user_id):
            meta = self.repo.get_meta(chat_id)
            entries.append({
                "chatId": chat_id,
                "name": meta.name if meta else None,
                "updatedAt": meta.updated_at if meta else None,
            })
        # Most recently active first; unknown activity sorts last
        entries.sort(key=lambda e: (-(e["updatedAt"] or 0), e["chatId"]))
        return entries

    def list_members(self, requester_id: str, chat_id: str) -> list[UserProfile]:
        meta = self._require_meta(chat_id)
        self._require_group(meta)
        member_ids = self.repo.get_member_ids(chat_id)
        if requester_id not in member_ids:
            raise Unauthorized("Not a member of this chat")
        return self.user_repo.get_many(member_ids)

    # --------------------------------------------------------------- metadata

    def get_meta(self, requester_id: str, chat_id: str, expected_type: Optional[ChatType] = None) -> dict:
        meta = self._require_meta(chat_id)
        member_ids = self.repo.get_member_ids(chat_id)
        if requester_id not in member_ids:
            raise Unauthorized("Not a member of this chat")
        self._check_type(meta.type, expected_type)

        result = {
            "chatId": chat_id,
            "type": meta.type,
            "name": meta.name,
            "createdAt": meta.created_at,
            "updatedAt": meta.updated_at,
            "createdBy": meta.created_by,
            "members": members_of(member_ids),
            "lastMessage": self._resolve_last_message(chat_id, meta.last_message),
        }
        if meta.is_dm:
            result["members"] = members_of([meta.user1, meta.user2]) or result["members"]
        return result

    def _resolve_last_message(self, chat_id: str, raw: Optional[str]) -> Optional[dict]:
        """Project the cached last message, falling back to the log head.

        The cache is a hint: a payload that decodes but does not validate is
        returned partially, and nothing here fails the enclosing read.
        """
        message = Message.from_raw(raw) if raw else None
        if message is None and raw:
            data = decode_payload(raw)
            if data is not None:
                return {
                    "id": data.get("id"),
                    "senderId": data.get("senderId"),
                    "sender": None,
                    "text": data.get("text"),
                    "timestamp": to_millis(data.get("timestamp")),
                }

        if message is None:
            try:
                message = self.messages.latest(chat_id)
            except ChatError as exc:
                logger.warning(f"Could not read log head of chat {chat_id}: {exc}")
                return None
            if message is None:
                return None

        try:
            sender = self.user_repo.get_by_id(message.sender_id)
        except ChatError:
            sender = None
        projection = message.to_dict()
        projection["sender"] = sender.model_dump() if sender else None
        return projection

    # --------------------------------------------------------------- messages

    def send_message(self, sender_id: str, chat_id: str, text: str,
                     expected_type: Optional[ChatType] = None) -> Message:
        member_ids = self.repo.get_member_ids(chat_id)
        if sender_id not in member_ids:
            raise Unauthorized("Not a member of this chat")

        chat_type = self.repo.get_type(chat_id)
        self._check_type(chat_type, expected_type)

        if chat_type == ChatType.DM.value:
            other_id = next((m for m in member_ids if m != sender_id), None)
            if other_id is None:
                raise InvalidOperation("Unable to determine chat recipient")
            if not self.friend_repo.are_friends(sender_id, other_id):
                raise Unauthorized("You can only message friends")

        message = self.messages.append(chat_id, sender_id, text)
        self.notifier.new_message(chat_id, message.to_dict(), members_of(member_ids - {sender_id}))
        return message

    def get_messages(self, requester_id: str, chat_id: str, start: int, end: int,
                     expected_type: Optional[ChatType] = None) -> list[Message]:
        if not self.repo.is_member(chat_id, requester_id):
            raise Unauthorized("Not a member of this chat")
        if expected_type is not None:
            self._check_type(self.repo.get_type(chat_id), expected_type)
        return self.messages.range(chat_id, start, end)
