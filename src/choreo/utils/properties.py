"""Property mutation primitive used by snapshots and timeline steps."""
from __future__ import annotations

from typing import Any, Mapping

from esper import World

from choreo.components.visual_properties import VisualProperties


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"


# Marks a key that had no value; writing it back removes the key.
UNSET: Any = _Unset()


def _properties(world: World, entity: int) -> VisualProperties:
    try:
        return world.component_for_entity(entity, VisualProperties)
    except KeyError:
        props = VisualProperties()
        world.add_component(entity, props)
        return props


def get_property(world: World, entity: int, key: str, default: Any = UNSET) -> Any:
    try:
        props = world.component_for_entity(entity, VisualProperties)
    except KeyError:
        return default
    return props.values.get(key, default)


def get_properties(world: World, entity: int) -> dict[str, Any]:
    try:
        return dict(world.component_for_entity(entity, VisualProperties).values)
    except KeyError:
        return {}


def set_properties(world: World, entity: int, values: Mapping[str, Any]) -> None:
    if not values:
        return
    props = _properties(world, entity)
    for key, value in values.items():
        if value is UNSET:
            props.values.pop(key, None)
        else:
            props.values[key] = value
