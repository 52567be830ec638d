"""Tests for websocket frame decoding."""

from datetime import datetime, timezone

import pytest

from whopbot.events.models import (
    ChatPostEvent,
    IgnoredEvent,
    LivestreamStartedEvent,
    decode_event,
)


class TestDecodeEvent:
    @pytest.mark.parametrize("key", [
        "goFetchNotifications",
        "marketplaceStats",
        "experiencePreviewContent",
        "channelSubscriptionState",
        "accessPassMember",
    ])
    def test_noise_frames_ignored(self, key):
        event = decode_event({key: {"anything": True}})
        assert isinstance(event, IgnoredEvent)
        assert event.reason == key

    def test_typing_and_reactions_ignored(self):
        typing = decode_event({"broadcastResponse": {"typingIndicator": {"userId": "u"}}})
        reaction = decode_event({"feedEntity": {"postReactionCountUpdate": {"count": 3}}})
        assert isinstance(typing, IgnoredEvent)
        assert isinstance(reaction, IgnoredEvent)

    def test_unknown_shape_ignored(self):
        assert decode_event({"somethingNew": 1}) == IgnoredEvent("unhandled")
        assert decode_event({}) == IgnoredEvent("unhandled")

    def test_dms_post(self):
        event = decode_event({
            "feedEntity": {
                "dmsPost": {
                    "entityId": "post_1",
                    "feedId": "feed_1",
                    "userId": "user_1",
                    "content": "/ban @bob",
                    "feedType": "chat_feed",
                    "isPosterAdmin": True,
                    "createdAt": "1700000000000",
                    "user": {"username": "alice"},
                    "mentionedUserIds": ["user_bob"],
                }
            }
        })

        assert isinstance(event, ChatPostEvent)
        assert event.id == "post_1"
        assert event.username == "alice"
        assert event.is_poster_admin
        assert event.is_command
        assert event.mentioned_user_ids == ["user_bob"]
        assert event.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_dms_post_defaults(self):
        event = decode_event({
            "feedEntity": {"dmsPost": {"entityId": "post_1", "feedId": "feed_1", "content": "hi"}}
        })

        assert event.feed_type == "chat_feed"
        assert not event.is_poster_admin
        assert not event.is_command
        assert event.mentioned_user_ids == []
        assert event.timestamp is None

    def test_dms_post_without_ids_rejected(self):
        with pytest.raises(ValueError):
            decode_event({"feedEntity": {"dmsPost": {"content": "/help"}}})

    def test_livestream(self):
        event = decode_event({
            "feedEntity": {
                "livestreamFeed": {
                    "entityId": "live_1",
                    "hostId": "user_host",
                    "experienceId": "exp_1",
                    "title": "Launch",
                    "startedAt": "not-a-number",
                }
            }
        })

        assert isinstance(event, LivestreamStartedEvent)
        assert event.feed_id == "live_1"
        assert event.host_id == "user_host"
        assert event.title == "Launch"
        assert event.started_at is None

    def test_livestream_without_host_rejected(self):
        with pytest.raises(ValueError):
            decode_event({"feedEntity": {"livestreamFeed": {"entityId": "live_1"}}})
