from __future__ import annotations

import pytest

from pillbox.core.models import MentionKind, MentionMarker, ProfileSnapshot, TextRun


def _marker(start: int, end: int, label: str = "x") -> MentionMarker:
    return MentionMarker(MentionKind.USER, "id", label, start, end)


def test_segments_use_display_coordinates() -> None:
    run = TextRun(
        text="hi bob see example.com ok",
        markers=[_marker(3, 6, label="Robert")],
        linked_ranges=((11, 22),),
    )

    segments = run.segments()

    assert [s.text for s in segments] == ["hi ", "Robert", " see ", "example.com", " ok"]
    assert [s.start for s in segments] == [0, 3, 9, 14, 25]
    assert segments[1].marker is run.markers[0]
    assert segments[3].linked is True
    assert [s.is_plain for s in segments] == [True, False, True, False, True]
    assert run.display_text() == "hi Robert see example.com ok"


def test_copy_does_not_share_markers() -> None:
    run = TextRun(text="hi bob", markers=[_marker(3, 6)])
    clone = run.copy()

    clone.markers[0].current_label = "changed"

    assert run.markers[0].current_label == "x"
    assert clone.text == run.text


def test_markers_are_sorted_by_start() -> None:
    run = TextRun(text="ab cd", markers=[_marker(3, 5), _marker(0, 2)])

    assert [m.start for m in run.markers] == [0, 3]


@pytest.mark.parametrize(
    "markers, linked",
    [
        ([_marker(0, 0)], ()),
        ([_marker(2, 9)], ()),
        ([_marker(0, 3), _marker(2, 4)], ()),
        ([_marker(0, 3)], ((1, 2),)),
    ],
)
def test_invalid_ranges_are_rejected(markers, linked) -> None:
    with pytest.raises(ValueError):
        TextRun(text="abcdef", markers=markers, linked_ranges=linked)


def test_snapshot_lookup_treats_bad_identifiers_as_misses() -> None:
    snapshot = ProfileSnapshot(version=1, names={"alice": "Alice", "ghost": ""})

    assert snapshot.get_display_name("alice") == "Alice"
    assert snapshot.get_display_name("ghost") is None
    assert snapshot.get_display_name("") is None
    assert snapshot.get_display_name(None) is None
    assert snapshot.get_display_name(42) is None


def test_snapshot_is_isolated_from_source_dict() -> None:
    names = {"alice": "Alice"}
    snapshot = ProfileSnapshot(version=1, names=names)

    names["alice"] = "Mallory"

    assert snapshot.get_display_name("alice") == "Alice"
