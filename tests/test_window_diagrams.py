import pytest

from app.constants.window_catalog import GRILLE_STYLES, WINDOW_TYPES
from app.schemas.billing.quotation_schemas import WindowSpecification
from app.utils.pdf_generators import window_diagrams
from app.utils.pdf_generators.window_diagrams import PLACEHOLDER_LABEL, build_window_diagram

WIDTH, HEIGHT = 180, 160


def _spec(**data):
    return WindowSpecification.model_validate(data)


@pytest.mark.parametrize("window_type", sorted(WINDOW_TYPES))
def test_every_catalog_type_draws(window_type):
    outcome = build_window_diagram(_spec(type=window_type), WIDTH, HEIGHT)
    assert outcome.ok
    assert outcome.placeholder is None
    assert outcome.drawing.width == WIDTH
    assert outcome.drawing.height == HEIGHT


def test_unknown_type_draws_plain_frame():
    outcome = build_window_diagram(_spec(type="hexagonal-porthole"), WIDTH, HEIGHT)
    assert outcome.ok


@pytest.mark.parametrize("style", GRILLE_STYLES)
def test_grille_styles_draw(style):
    spec = _spec(type="casement", specifications={"grille": {"enabled": True, "style": style}})
    assert build_window_diagram(spec, WIDTH, HEIGHT).ok


def test_grille_adds_lines():
    plain = build_window_diagram(_spec(type="fixed"), WIDTH, HEIGHT)
    gridded = build_window_diagram(
        _spec(type="fixed", specifications={"grille": {"enabled": True, "style": "colonial"}}),
        WIDTH,
        HEIGHT,
    )
    assert len(gridded.drawing.contents) > len(plain.drawing.contents)


def test_sliding_draws_one_pane_per_panel():
    two = build_window_diagram(_spec(type="sliding", specifications={"panels": 2}), WIDTH, HEIGHT)
    four = build_window_diagram(_spec(type="sliding", specifications={"panels": 4}), WIDTH, HEIGHT)
    assert len(four.drawing.contents) > len(two.drawing.contents)


def test_zero_dimensions_fall_back_to_placeholder():
    outcome = build_window_diagram(_spec(dimensions={"width": 0, "height": 900}), WIDTH, HEIGHT)
    assert not outcome.ok
    assert outcome.placeholder == PLACEHOLDER_LABEL


def test_failing_builder_falls_back_to_placeholder(monkeypatch, caplog):
    def broken(drawing, box, spec):
        raise ZeroDivisionError("bad geometry")

    monkeypatch.setitem(window_diagrams._BUILDERS, "pivot", broken)
    outcome = build_window_diagram(_spec(id="W7", type="pivot"), WIDTH, HEIGHT)

    assert not outcome.ok
    assert outcome.placeholder == PLACEHOLDER_LABEL
    assert "W7" in caplog.text


def test_custom_hex_frame_colour_is_used():
    spec = _spec(specifications={"frame": {"color": "custom", "custom_color": "#123456"}})
    colour = window_diagrams.frame_color(spec)
    assert colour.hexval().lower() == "0x123456"


def test_bad_custom_colour_uses_default():
    spec = _spec(specifications={"frame": {"color": "custom", "custom_color": "#zzzzzz"}})
    assert window_diagrams.frame_color(spec) == window_diagrams.DEFAULT_FRAME


def test_huge_glass_block_wall_is_capped():
    spec = _spec(type="glass-block", dimensions={"width": 2_000_000, "height": 2_000_000})
    outcome = build_window_diagram(spec, WIDTH, HEIGHT)

    assert outcome.ok
    assert window_diagrams.block_grid(spec) == (window_diagrams.MAX_BLOCKS_PER_SIDE,) * 2
    assert len(outcome.drawing.contents) <= window_diagrams.MAX_BLOCKS_PER_SIDE ** 2 + 1


@pytest.mark.parametrize("window_type", ["sliding", "louvered"])
def test_panel_count_is_capped(window_type):
    many = build_window_diagram(_spec(type=window_type, specifications={"panels": 10**9}), WIDTH, HEIGHT)
    capped = build_window_diagram(
        _spec(type=window_type, specifications={"panels": window_diagrams.MAX_SLATS}), WIDTH, HEIGHT
    )
    assert many.ok
    assert len(many.drawing.contents) == len(capped.drawing.contents)


def _angle_label(outcome):
    return next(s.text for s in outcome.drawing.contents if getattr(s, "text", "").endswith(" deg"))


@pytest.mark.parametrize("angle, shown", [(0, "30 deg"), (45, "45 deg"), (400, "90 deg")])
def test_bay_label_matches_drawn_angle(angle, shown):
    spec = _spec(type="bay", dimensions={"width": 2400, "height": 1500, "bay_angle": angle})
    assert window_diagrams.bay_angle(spec) == float(shown.split()[0])
    assert _angle_label(build_window_diagram(spec, WIDTH, HEIGHT)) == shown
