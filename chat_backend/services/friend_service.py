import logging

from chat_backend.core.exceptions import ChatError, Conflict, InvalidOperation, NotFound
from chat_backend.core.store import Store
from chat_backend.models.users import UserProfile
from chat_backend.repositories.friend_repo import FriendRepository
from chat_backend.repositories.user_repo import UserRepository
from chat_backend.services.notification_service import Notifier

logger = logging.getLogger(__name__)


class FriendService:
    """Friend-request state machine and symmetric friendship edges.

    Per ordered pair (A, B) the states are none, A->B pending, B->A pending
    and friends. ``send_request`` only moves none -> pending, ``accept_request``
    pending -> friends, ``deny_request`` pending -> none. Edges are never
    removed here.
    """

    def __init__(self, db: Store, notifier: Notifier):
        self.repo = FriendRepository(db)
        self.user_repo = UserRepository(db)
        self.notifier = notifier

    def send_request(self, sender_id: str, receiver_email: str) -> str:
        receiver_id = self.user_repo.get_id_by_email(receiver_email)
        if not receiver_id:
            raise NotFound("This person does not exist")

        if receiver_id == sender_id:
            raise InvalidOperation("You cannot add yourself as a friend")

        if self.repo.has_request(receiver_id, sender_id):
            raise Conflict("Already added this user")

        if self.repo.are_friends(sender_id, receiver_id):
            raise Conflict("Already friends with this user")

        # A pending B->A request is left alone; both records coexist until
        # one side accepts, which clears the pair
        self.repo.add_request(receiver_id, sender_id)
        logger.info(f"Friend request {sender_id} -> {receiver_id}")

        try:
            sender = self.user_repo.get_by_id(sender_id)
        except ChatError as exc:
            logger.warning(f"Could not load sender profile {sender_id}: {exc}")
            sender = None
        payload = sender.model_dump() if sender else {"id": sender_id}
        self.notifier.friend_requested(receiver_id, payload)
        return receiver_id

    def accept_request(self, accepter_id: str, sender_id: str):
        if self.repo.are_friends(accepter_id, sender_id):
            raise Conflict("Already friends")

        if not self.repo.has_request(accepter_id, sender_id):
            raise NotFound("No friend request")

        self.repo.add_friendship(accepter_id, sender_id)
        self.repo.remove_request(accepter_id, sender_id)
        # Crossed request in the other direction is now meaningless
        self.repo.remove_request(sender_id, accepter_id)
        logger.info(f"Friendship created: {accepter_id} <-> {sender_id}")

        try:
            accepter = self.user_repo.get_by_id(accepter_id)
            sender = self.user_repo.get_by_id(sender_id)
        except ChatError as exc:
            logger.warning(f"Could not load profiles for friend notification: {exc}")
            return
        if accepter and sender:
            self.notifier.friend_added(accepter_id, sender.model_dump())
            self.notifier.friend_added(sender_id, accepter.model_dump())

    def deny_request(self, accepter_id: str, sender_id: str):
        removed = self.repo.remove_request(accepter_id, sender_id)
        if removed:
            logger.info(f"Friend request {sender_id} -> {accepter_id} denied")

    def list_friends(self, user_id: str) -> list[UserProfile]:
        return self.user_repo.get_many(self.repo.get_friend_ids(user_id))

    def list_friend_ids(self, user_id: str) -> list[str]:
        return sorted(self.repo.get_friend_ids(user_id))

    def list_incoming_requests(self, user_id: str) -> list[UserProfile]:
        return self.user_repo.get_many(self.repo.get_request_ids(user_id))

    def are_friends(self, user_id: str, other_id: str) -> bool:
        return self.repo.are_friends(user_id, other_id)
