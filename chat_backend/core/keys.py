"""Key layout. Keys are ``<entity>:<id>[:<qualifier>]``."""


def user(user_id: str) -> str:
    return f"user:{user_id}"


def user_by_email(email: str) -> str:
    return f"user:email:{email}"


def friends(user_id: str) -> str:
    return f"user:{user_id}:friends"


def incoming_requests(user_id: str) -> str:
    return f"user:{user_id}:incoming_friend_requests"


def dms(user_id: str) -> str:
    return f"user:{user_id}:dms"


def groups(user_id: str) -> str:
    return f"user:{user_id}:groups"


def user_chats(user_id: str) -> str:
    # Only used as a notification channel, never written
    return f"user:{user_id}:chats"


def chat(chat_id: str) -> str:
    return f"chat:{chat_id}"


def chat_meta(chat_id: str) -> str:
    return f"chat:{chat_id}:meta"


def chat_members(chat_id: str) -> str:
    return f"chat:{chat_id}:members"


def chat_messages(chat_id: str) -> str:
    return f"chat:{chat_id}:messages"
