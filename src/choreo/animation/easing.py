from typing import Callable, Dict, Union


def _clamp(t: float) -> float:
    return 0.0 if t < 0.0 else 1.0 if t > 1.0 else t


def linear(t: float) -> float:
    return _clamp(t)


def ease_in_quad(t: float) -> float:
    t = _clamp(t)
    return t * t


def ease_out_quad(t: float) -> float:
    t = _clamp(t)
    return 1.0 - (1.0 - t) ** 2


def ease_in_out_quad(t: float) -> float:
    t = _clamp(t)
    if t < 0.5:
        return 2 * t * t
    return -2 * t * t + 4 * t - 1


def ease_out_cubic(t: float) -> float:
    t = _clamp(t)
    return 1.0 - (1.0 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    t = _clamp(t)
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - (-2.0 * t + 2.0) ** 3 / 2.0


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


EASINGS: Dict[str, Callable[[float], float]] = {
    "linear": linear,
    "in_quad": ease_in_quad,
    "out_quad": ease_out_quad,
    "in_out_quad": ease_in_out_quad,
    "out_cubic": ease_out_cubic,
    "in_out_cubic": ease_in_out_cubic,
}

DEFAULT_EASING = "out_quad"


def resolve_easing(easing: Union[str, Callable[[float], float], None]) -> Callable[[float], float]:
    if easing is None:
        return EASINGS[DEFAULT_EASING]
    if callable(easing):
        return easing
    try:
        return EASINGS[easing]
    except KeyError as exc:
        raise ValueError(f"Unknown easing '{easing}'") from exc
