from __future__ import annotations

from telethon.tl.types import (
    InputMessageEntityMentionName,
    InputUser,
    MessageEntityBold,
    MessageEntityMention,
    MessageEntityMentionName,
    MessageEntityTextUrl,
    MessageEntityUrl,
)

from pillbox.adapters.telegram_mapper import build_body
from pillbox.core.config import MentionConfig
from pillbox.core.models import MentionKind


class DummyMessage:
    def __init__(self, text: str, entities=None, formatted: "str | None" = None) -> None:
        self.raw_text = text
        self.entities = entities
        self.text = formatted if formatted is not None else text


def test_mention_name_becomes_user_marker() -> None:
    message = DummyMessage("hi Alice!", [MessageEntityMentionName(offset=3, length=5, user_id=42)])

    body = build_body(message)

    [marker] = body.run.markers
    assert marker.kind is MentionKind.USER
    assert marker.identifier == "42"
    assert marker.current_label == "Alice"
    assert (marker.start, marker.end) == (3, 8)


def test_input_mention_name_uses_inner_user_id() -> None:
    entity = InputMessageEntityMentionName(
        offset=0, length=3, user_id=InputUser(user_id=7, access_hash=0)
    )

    body = build_body(DummyMessage("Bob", [entity]))

    assert body.run.markers[0].identifier == "7"


def test_utf16_offsets_are_converted() -> None:
    # The waving hand takes two UTF-16 code units.
    text = "\U0001F44B Alice hi"
    message = DummyMessage(text, [MessageEntityMentionName(offset=3, length=5, user_id=1)])

    marker = build_body(message).run.markers[0]

    assert text[marker.start : marker.end] == "Alice"


def test_username_mentions_are_classified() -> None:
    text = "@all @news @Carol"
    config = MentionConfig(everyone_keywords=frozenset({"@all"}), room_usernames=frozenset({"news"}))
    entities = [
        MessageEntityMention(offset=0, length=4),
        MessageEntityMention(offset=5, length=5),
        MessageEntityMention(offset=11, length=6),
    ]

    markers = build_body(DummyMessage(text, entities), config).run.markers

    assert [(m.kind, m.identifier) for m in markers] == [
        (MentionKind.EVERYONE, "@all"),
        (MentionKind.ROOM, "@news"),
        (MentionKind.USER, "@carol"),
    ]
    assert markers[2].current_label == "@Carol"


def test_url_entities_become_pre_linked_ranges() -> None:
    text = "see example.com and docs"
    entities = [
        MessageEntityUrl(offset=4, length=11),
        MessageEntityTextUrl(offset=20, length=4, url="https://docs.example.com"),
        MessageEntityBold(offset=0, length=3),
    ]

    run = build_body(DummyMessage(text, entities)).run

    assert run.linked_ranges == ((4, 15), (20, 24))
    assert run.markers == []


def test_overlapping_entities_are_skipped() -> None:
    text = "ping Alice"
    entities = [
        MessageEntityMentionName(offset=5, length=5, user_id=1),
        MessageEntityMention(offset=5, length=5),
    ]

    run = build_body(DummyMessage(text, entities)).run

    assert len(run.markers) == 1
    assert run.markers[0].identifier == "1"


def test_formatted_body_only_when_different() -> None:
    plain = build_body(DummyMessage("hello"))
    formatted = build_body(DummyMessage("hello", formatted="**hello**"))

    assert plain.formatted_body is None
    assert formatted.formatted_body == "**hello**"
    assert formatted.body == "hello"


def test_missing_text_and_entities() -> None:
    message = DummyMessage("", None)
    message.raw_text = None

    body = build_body(message)

    assert body.body == ""
    assert body.run.text == ""
    assert body.run.markers == []
