from fastapi import BackgroundTasks

from chat_backend.services.notification_service import Notifier, build_client, to_channel


def test_channel_names_have_no_colons():
    assert to_channel("user:42:incoming_friend_requests") == "user__42__incoming_friend_requests"


def test_publish_forwards_to_broker(notifier, broker):
    notifier.publish("chat:c1", "incoming_message", {"id": "m1"})
    assert broker.events == [("chat__c1", "incoming_message", {"id": "m1"})]


def test_publish_swallows_broker_errors(failing_notifier):
    failing_notifier.publish("chat:c1", "incoming_message", {"id": "m1"})


def test_disabled_notifier_is_a_noop():
    notifier = Notifier(None)
    assert not notifier.enabled
    notifier.friend_added("u1", {"id": "u2"})


def test_missing_credentials_disable_the_client(monkeypatch):
    from chat_backend.core import config

    monkeypatch.setattr(config, "PUSHER_APP_ID", None)
    assert build_client() is None


def test_credentials_build_a_pusher_client(monkeypatch):
    import pusher

    from chat_backend.core import config

    monkeypatch.setattr(config, "PUSHER_APP_ID", "123")
    monkeypatch.setattr(config, "PUSHER_APP_KEY", "key")
    monkeypatch.setattr(config, "PUSHER_APP_SECRET", "secret")
    assert isinstance(build_client(), pusher.Pusher)


def test_activity_channels_share_one_trigger(notifier, broker):
    notifier.new_message("c1", {"id": "m1"}, ["u1", "u2", "u3"])

    assert broker.calls == 2
    assert {c for c, _, _ in broker.named("chat_activity")} == {"user__u1__chats", "user__u2__chats", "user__u3__chats"}


def test_large_fan_out_is_split_into_batches(notifier, broker):
    notifier.publish_many([f"user:{i}:chats" for i in range(250)], "chat_activity", {})

    assert broker.calls == 3
    assert len(broker.events) == 250


def test_deferred_notifier_queues_broker_calls(notifier, broker):
    tasks = BackgroundTasks()
    deferred = notifier.deferred(tasks.add_task)

    deferred.friend_added("u1", {"id": "u2"})
    assert broker.events == []

    for task in tasks.tasks:
        task.func(*task.args, **task.kwargs)
    assert broker.events == [("user__u1__friends", "new_friend", {"id": "u2"})]


def test_deferred_broker_errors_are_swallowed(failing_notifier):
    tasks = BackgroundTasks()
    failing_notifier.deferred(tasks.add_task).publish("chat:c1", "incoming_message", {})

    for task in tasks.tasks:
        task.func(*task.args, **task.kwargs)
