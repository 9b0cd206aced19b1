import logging

from hexterritory.controller.assignment import UNKNOWN_OWNER, AssignmentTracker
from hexterritory.model.pattern import AssignmentInfo, TextureRef

FEED = {
    "acme": {"tileIndices": [1, 2], "patternImage": "acme.png"},
    "globex": {"cluster": {"tileIndices": [7]}},
    "initech": {"tileIndices": [12, 13]},
}


def test_set_assigned_accepts_owner_ids_and_bare_indices(record_signal):
    tracker = AssignmentTracker()
    events = record_signal(tracker.assigned_changed)
    tracker.set_assigned({4: "acme", 5: AssignmentInfo("globex")})
    assert tracker.info(4).owner_id == "acme"
    assert tracker.owners() == {"acme", "globex"}

    tracker.set_assigned([8, 9])
    assert tracker.assigned == {8, 9}
    assert tracker.info(8).owner_id == UNKNOWN_OWNER
    assert not tracker.is_assigned(4)
    assert len(events) == 2


def test_set_from_feed_skips_edited_owner():
    tracker = AssignmentTracker()
    tracker.set_from_feed(FEED, exclude_owner="initech")
    assert tracker.assigned == {1, 2, 7}
    assert 12 not in tracker
    assert tracker.info(1).pattern_image == TextureRef("acme.png")


def test_set_from_feed_sponsor_list():
    tracker = AssignmentTracker()
    tracker.set_from_feed([
        {"id": 3, "cluster": {"tileIndices": [10, 11]}},
        {"id": "x", "tileIndices": [20]},
    ], exclude_owner=3)
    assert tracker.assigned == {20}


def test_overlapping_claims_are_logged(caplog):
    tracker = AssignmentTracker()
    with caplog.at_level(logging.WARNING, logger="hexterritory"):
        tracker.set_from_feed({"a": {"tileIndices": [1]}, "b": {"tileIndices": [1]}})
    assert tracker.info(1).owner_id == "b"
    assert "claimed by both" in caplog.text


def test_groups():
    tracker = AssignmentTracker()
    tracker.set_from_feed(FEED)
    groups = tracker.groups()
    assert groups["acme"][1] == [1, 2]
    assert groups["initech"][1] == [12, 13]
    assert set(tracker.groups_with_pattern()) == {"acme"}


def test_tile_map_is_a_copy():
    tracker = AssignmentTracker()
    tracker.set_assigned({1: "a"})
    snapshot = tracker.tile_map()
    snapshot[2] = AssignmentInfo("b")
    assert len(tracker) == 1


def test_clear(record_signal):
    tracker = AssignmentTracker()
    tracker.set_assigned({1: "a"})
    events = record_signal(tracker.assigned_changed)
    tracker.clear()
    assert len(tracker) == 0
    assert events == [{}]
