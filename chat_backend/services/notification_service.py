import logging
from typing import Callable, Iterable, Optional

import pusher
from fastapi import BackgroundTasks, Depends

from chat_backend.core import config, keys

logger = logging.getLogger(__name__)

# Pusher rejects a trigger addressed to more channels than this
MAX_CHANNELS_PER_TRIGGER = 100


def to_channel(key: str) -> str:
    """Pusher channel names may not contain ':'."""
    return key.replace(":", "__")


def build_client() -> Optional[pusher.Pusher]:
    if not (config.PUSHER_APP_ID and config.PUSHER_APP_KEY and config.PUSHER_APP_SECRET):
        logger.warning("Pusher credentials are missing, real-time notifications are disabled")
        return None
    return pusher.Pusher(
        app_id=config.PUSHER_APP_ID,
        key=config.PUSHER_APP_KEY,
        secret=config.PUSHER_APP_SECRET,
        cluster=config.PUSHER_CLUSTER,
        ssl=True,
        timeout=config.PUSHER_TIMEOUT,
    )


class Notifier:
    """Best-effort fan-out of domain events to the pub/sub broker.

    ``publish`` never raises: the durable write that produced the event has
    already happened and is not rolled back or retried if the push is lost.
    When built with ``defer`` (normally ``BackgroundTasks.add_task``) the broker
    calls are queued and run after the response has been sent.
    """

    def __init__(self, client=None, defer: Optional[Callable] = None):
        self.client = client
        self.defer = defer

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def deferred(self, defer: Callable) -> "Notifier":
        return Notifier(self.client, defer)

    def publish(self, channel_key: str, event_name: str, payload: dict):
        self.publish_many([channel_key], event_name, payload)

    def publish_many(self, channel_keys: Iterable[str], event_name: str, payload: dict):
        if self.client is None:
            logger.debug(f"Notifier disabled, dropping {event_name}")
            return
        channels = [to_channel(key) for key in channel_keys]
        for start in range(0, len(channels), MAX_CHANNELS_PER_TRIGGER):
            batch = channels[start:start + MAX_CHANNELS_PER_TRIGGER]
            if self.defer is None:
                self._trigger(batch, event_name, payload)
            else:
                self.defer(self._trigger, batch, event_name, payload)

    def _trigger(self, channels: list[str], event_name: str, payload: dict):
        target = channels[0] if len(channels) == 1 else channels
        try:
            self.client.trigger(target, event_name, payload)
        except Exception as exc:
            logger.warning(f"Failed to publish {event_name} to {target}: {exc}")

    # --- domain events ---
    def friend_requested(self, receiver_id: str, sender: dict):
        self.publish(keys.incoming_requests(receiver_id), "incoming_friend_requests", {
            "senderId": sender.get("id"),
            "senderEmail": sender.get("email"),
            "senderName": sender.get("name"),
            "senderImage": sender.get("image"),
        })

    def friend_added(self, user_id: str, friend: dict):
        self.publish(keys.friends(user_id), "new_friend", friend)

    def chat_created(self, user_id: str, chat_id: str, other: dict):
        self.publish(keys.user_chats(user_id), "new_chat", {"chatId": chat_id, "friend": other})

    def group_added(self, user_id: str, chat_id: str, name: Optional[str]):
        self.publish(keys.groups(user_id), "group_added", {"chatId": chat_id, "name": name})

    def group_removed(self, user_id: str, chat_id: str):
        self.publish(keys.groups(user_id), "group_removed", {"chatId": chat_id})

    def new_message(self, chat_id: str, message: dict, recipient_ids=()):
        self.publish(keys.chat(chat_id), "incoming_message", message)
        self.publish_many(
            [keys.user_chats(user_id) for user_id in recipient_ids],
            "chat_activity",
            {"chatId": chat_id, "message": message},
        )


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = Notifier(build_client())
    return _notifier


def get_request_notifier(
    background_tasks: BackgroundTasks,
    notifier: Notifier = Depends(get_notifier),
) -> Notifier:
    """Notifier for one request; its broker calls run after the response is sent"""
    return notifier.deferred(background_tasks.add_task)
