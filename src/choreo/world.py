from esper import World

from choreo.components.token import Token
from choreo.components.visual_properties import VisualProperties
from choreo.constants import TOKEN_COLOR


def create_world() -> World:
    return World()


def spawn_token(world: World, name: str = "info") -> int:
    """Create the reusable marker entity, hidden until a transfer positions it."""
    return world.create_entity(
        Token(name=name),
        VisualProperties(values={
            "x": 0.0,
            "y": 0.0,
            "visible": False,
            "content": "",
            "color": TOKEN_COLOR,
            "opacity": 1.0,
        }),
    )

