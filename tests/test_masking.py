from array import array

from palette_reducer.processing.buffer import PixelBuffer
from palette_reducer.processing.masking import (
    EDGE_VIEW_ALGORITHM,
    EDGE_VIEW_ALPHA,
    EDGE_VIEW_BACKGROUND,
    EDGE_VIEW_BOTH,
    adjust_color,
    apply_edge_post_processing,
    create_edge_visualization,
)
from palette_reducer.processing.types import (
    AdjustmentConfig,
    AlgorithmRule,
    AlphaBandRule,
    EdgeConfig,
    OutlineRule,
)


def _buffer(width, height, pixels):
    return PixelBuffer(width, height, bytearray(channel for pixel in pixels for channel in pixel))


def _colors(view):
    return [view.pixel(x, y)[:3] for y in range(view.height) for x in range(view.width)]


def test_outline_flags_neighbours_of_transparent_pixel():
    width = 5
    pixels = [(200, 200, 200, 255)] * 25
    pixels[2 * width + 2] = (0, 0, 0, 0)
    buffer = _buffer(width, 5, pixels)
    config = EdgeConfig(
        outline=OutlineRule(enabled=True, opacity_min=255, neighbor_max=0),
        algorithm=AlgorithmRule(enabled=False),
    )

    view = create_edge_visualization(buffer, None, config)

    for x, y in ((2, 1), (2, 3), (1, 2), (3, 2)):
        assert view.pixel(x, y) == EDGE_VIEW_ALPHA + (255,)
    assert view.pixel(1, 1)[:3] == EDGE_VIEW_BACKGROUND
    assert view.pixel(2, 2)[:3] == EDGE_VIEW_BACKGROUND
    # The canvas border counts as transparent.
    assert view.pixel(0, 3)[:3] == EDGE_VIEW_ALPHA


def test_outline_requires_opacity_floor():
    buffer = _buffer(2, 1, [(10, 10, 10, 254), (10, 10, 10, 0)])
    config = EdgeConfig(
        outline=OutlineRule(enabled=True, opacity_min=255, neighbor_max=0),
        algorithm=AlgorithmRule(enabled=False),
    )

    assert _colors(create_edge_visualization(buffer, None, config)) == [EDGE_VIEW_BACKGROUND] * 2


def test_visualization_colour_codes_rules():
    buffer = _buffer(4, 1, [(0, 0, 0, 100), (0, 0, 0, 255), (0, 0, 0, 100), (0, 0, 0, 255)])
    edges = array("f", [0.0, 31.0, 31.0, 30.0])
    config = EdgeConfig(
        band=AlphaBandRule(enabled=True, minimum=32, maximum=254),
        algorithm=AlgorithmRule(enabled=True, threshold=30),
    )

    view = create_edge_visualization(buffer, edges, config)

    assert _colors(view) == [EDGE_VIEW_ALPHA, EDGE_VIEW_ALGORITHM, EDGE_VIEW_BOTH, EDGE_VIEW_BACKGROUND]
    assert all(view.pixel(x, 0)[3] == 255 for x in range(4))


def test_disabled_rules_never_fire():
    buffer = _buffer(1, 1, [(0, 0, 0, 100)])
    edges = array("f", [200.0])
    config = EdgeConfig(algorithm=AlgorithmRule(enabled=False))

    assert _colors(create_edge_visualization(buffer, edges, config)) == [EDGE_VIEW_BACKGROUND]


def test_post_processing_without_adjustments_is_a_no_op():
    buffer = _buffer(2, 1, [(100, 100, 100, 255), (50, 60, 70, 40)])
    before = buffer.copy()
    config = EdgeConfig(band=AlphaBandRule(enabled=True), algorithm=AlgorithmRule(threshold=0))

    apply_edge_post_processing(buffer, array("f", [99.0, 99.0]), config)

    assert buffer == before


def test_post_processing_only_touches_edge_pixels():
    buffer = _buffer(2, 1, [(100, 100, 100, 255), (100, 100, 100, 255)])
    config = EdgeConfig(adjustments=AdjustmentConfig(brightness=-50))

    apply_edge_post_processing(buffer, array("f", [100.0, 0.0]), config)

    assert buffer.pixel(0, 0) == (50, 50, 50, 255)
    assert buffer.pixel(1, 0) == (100, 100, 100, 255)


def test_post_processing_uses_alpha_band_without_edge_map():
    buffer = _buffer(2, 1, [(100, 100, 100, 128), (100, 100, 100, 255)])
    config = EdgeConfig(
        band=AlphaBandRule(enabled=True, minimum=32, maximum=254),
        adjustments=AdjustmentConfig(brightness=20),
    )

    apply_edge_post_processing(buffer, None, config)

    assert buffer.pixel(0, 0) == (120, 120, 120, 128)
    assert buffer.pixel(1, 0) == (100, 100, 100, 255)


def test_adjust_color_hue_shift():
    assert adjust_color(255, 0, 0, AdjustmentConfig(hue=120)) == (0, 255, 0)
    assert adjust_color(255, 0, 0, AdjustmentConfig(hue=-120)) == (0, 0, 255)


def test_adjust_color_hsv_desaturation():
    assert adjust_color(255, 0, 0, AdjustmentConfig(saturation=-100)) == (255, 255, 255)


def test_adjust_color_contrast_clamps():
    assert adjust_color(200, 128, 60, AdjustmentConfig(contrast=100)) == (255, 128, 0)
