from chat_backend.core import keys
from chat_backend.core.store import Store


class FriendRepository:
    def __init__(self, db: Store):
        self.db = db

    def are_friends(self, user_id: str, other_id: str) -> bool:
        return self.db.sismember(keys.friends(user_id), other_id)

    def has_request(self, receiver_id: str, sender_id: str) -> bool:
        return self.db.sismember(keys.incoming_requests(receiver_id), sender_id)

    def add_request(self, receiver_id: str, sender_id: str) -> int:
        return self.db.sadd(keys.incoming_requests(receiver_id), sender_id)

    def remove_request(self, receiver_id: str, sender_id: str) -> int:
        return self.db.srem(keys.incoming_requests(receiver_id), sender_id)

    def add_friendship(self, user_id: str, other_id: str):
        # Both directions are always written together
        self.db.sadd(keys.friends(user_id), other_id)
        self.db.sadd(keys.friends(other_id), user_id)

    def get_friend_ids(self, user_id: str) -> set:
        return self.db.smembers(keys.friends(user_id))

    def get_request_ids(self, user_id: str) -> set:
        return self.db.smembers(keys.incoming_requests(user_id))
