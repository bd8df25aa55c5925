import pytest

from choreo.animation.easing import EASINGS, ease_in_out_quad, ease_out_quad, resolve_easing


@pytest.mark.parametrize("name", sorted(EASINGS))
def test_easings_are_anchored(name):
    fn = EASINGS[name]
    assert fn(0.0) == pytest.approx(0.0)
    assert fn(1.0) == pytest.approx(1.0)
    assert fn(-1.0) == pytest.approx(0.0)
    assert fn(2.0) == pytest.approx(1.0)


def test_in_out_quad_is_symmetric():
    assert ease_in_out_quad(0.5) == pytest.approx(0.5)
    assert ease_in_out_quad(0.25) == pytest.approx(1.0 - ease_in_out_quad(0.75))


def test_resolve_easing():
    assert resolve_easing(None) is ease_out_quad
    assert resolve_easing("out_quad") is ease_out_quad
    custom = lambda t: t
    assert resolve_easing(custom) is custom
    with pytest.raises(ValueError):
        resolve_easing("bounce")
