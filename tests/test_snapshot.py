import pytest

from choreo import constants
from choreo.errors import SnapshotMisuse
from choreo.utils.properties import UNSET, get_property, get_properties, set_properties
from choreo.utils.snapshot import StateSnapshot, capture
from choreo.world import create_world


def _entity(world, **values):
    ent = world.create_entity()
    set_properties(world, ent, values)
    return ent


def test_capture_applies_and_dispose_restores():
    world = create_world()
    ent = _entity(world, color=(1, 1, 1), opacity=1.0)
    snap = capture(world, ent, {"color": (9, 9, 9), "opacity": 0.5})
    assert get_property(world, ent, "color") == (9, 9, 9)
    assert snap.property_keys == {"color", "opacity"}
    assert snap.original_values == {"color": (1, 1, 1), "opacity": 1.0}
    # Intermediate mutations do not leak past dispose.
    set_properties(world, ent, {"color": (5, 5, 5), "opacity": 0.1})
    snap.dispose()
    assert get_properties(world, ent) == {"color": (1, 1, 1), "opacity": 1.0}


def test_key_missing_before_capture_is_removed_again():
    world = create_world()
    ent = _entity(world, x=1.0)
    snap = capture(world, ent, {"highlight": True})
    assert get_property(world, ent, "highlight") is True
    snap.dispose()
    assert get_property(world, ent, "highlight") is UNSET
    assert get_properties(world, ent) == {"x": 1.0}


def test_untouched_keys_are_left_alone():
    world = create_world()
    ent = _entity(world, x=1.0, color="red")
    snap = capture(world, ent, {"color": "blue"})
    set_properties(world, ent, {"x": 42.0})
    snap.dispose()
    assert get_properties(world, ent) == {"x": 42.0, "color": "red"}


def test_context_manager_restores_on_error():
    world = create_world()
    ent = _entity(world, color="red")
    with pytest.raises(RuntimeError):
        with StateSnapshot.capture(world, ent, {"color": "blue"}):
            assert get_property(world, ent, "color") == "blue"
            raise RuntimeError("boom")
    assert get_property(world, ent, "color") == "red"


def test_context_manager_restores_on_early_return():
    world = create_world()
    ent = _entity(world, color="red")

    def highlighted():
        with capture(world, ent, {"color": "blue"}):
            return get_property(world, ent, "color")

    assert highlighted() == "blue"
    assert get_property(world, ent, "color") == "red"


def test_double_dispose_is_misuse():
    world = create_world()
    ent = _entity(world, color="red")
    snap = capture(world, ent, {"color": "blue"})
    snap.dispose()
    with pytest.raises(SnapshotMisuse):
        snap.dispose()


def test_dispose_without_capture_is_misuse():
    world = create_world()
    ent = _entity(world, color="red")
    with pytest.raises(SnapshotMisuse):
        StateSnapshot(world, ent).dispose()


def test_misuse_only_logged_when_not_strict(monkeypatch, caplog):
    monkeypatch.setattr(constants, "STRICT_SNAPSHOTS", False)
    world = create_world()
    ent = _entity(world, color="red")
    snap = capture(world, ent, {"color": "blue"})
    snap.dispose()
    set_properties(world, ent, {"color": "green"})
    snap.dispose()
    assert get_property(world, ent, "color") == "green"
    assert "Snapshot misuse" in caplog.text
