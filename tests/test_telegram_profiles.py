from __future__ import annotations

import asyncio

from telethon.tl.types import MessageEntityMentionName, User

from pillbox.adapters.memory_directory import InMemoryProfileDirectory
from pillbox.adapters.telegram_profiles import (
    ProfileFetcher,
    directory_entries,
    remember_entities,
    unknown_mentioned_user_ids,
)


class DummyMessage:
    def __init__(self, entities) -> None:
        self.entities = entities


class FakeClient:
    def __init__(self, users: dict[int, User]) -> None:
        self._users = users
        self.requested: list[int] = []

    async def get_entity(self, user_id: int) -> User:
        self.requested.append(user_id)
        if user_id not in self._users:
            raise ValueError("unknown user")
        return self._users[user_id]


def test_directory_entries_include_username() -> None:
    user = User(id=10, first_name="Alice", last_name="Liddell", username="AliceL")

    assert directory_entries(user) == [("10", "Alice Liddell"), ("@alicel", "Alice Liddell")]


def test_entities_without_name_are_skipped() -> None:
    directory = InMemoryProfileDirectory()

    assert remember_entities(directory, [None, User(id=3)]) is False
    assert directory.version == 0


def test_remember_entities_bumps_version_once() -> None:
    directory = InMemoryProfileDirectory()

    remember_entities(directory, [User(id=1, first_name="A"), User(id=2, first_name="B")])

    assert directory.version == 1
    assert directory.get_display_name("2") == "B"


def test_unknown_mentioned_user_ids() -> None:
    directory = InMemoryProfileDirectory({"1": "Known"})
    message = DummyMessage(
        [
            MessageEntityMentionName(offset=0, length=1, user_id=1),
            MessageEntityMentionName(offset=2, length=1, user_id=2),
        ]
    )

    assert unknown_mentioned_user_ids(message, directory) == {2}


def test_fetcher_fills_directory_once_per_user() -> None:
    directory = InMemoryProfileDirectory()
    client = FakeClient({5: User(id=5, first_name="Eve")})
    fetcher = ProfileFetcher(client, directory)
    message = DummyMessage(
        [
            MessageEntityMentionName(offset=0, length=3, user_id=5),
            MessageEntityMentionName(offset=4, length=3, user_id=6),
        ]
    )

    assert asyncio.run(fetcher.fetch_mentioned(message)) is True
    assert directory.get_display_name("5") == "Eve"

    assert asyncio.run(fetcher.fetch_mentioned(message)) is False
    assert sorted(client.requested) == [5, 6]
