import pytest

from palette_reducer.processing.buffer import PixelBuffer
from palette_reducer.processing.enhance import apply_pre_processing, contrast_factor, gamma_table, lut_index
from palette_reducer.processing.types import PreProcessConfig


def _buffer(pixels):
    return PixelBuffer(len(pixels), 1, bytearray(channel for pixel in pixels for channel in pixel))


def test_neutral_settings_are_a_no_op():
    pixels = [(0, 0, 0, 255), (12, 200, 99, 128), (255, 255, 255, 1), (37, 3, 250, 0)]
    buffer = _buffer(pixels)

    apply_pre_processing(buffer, PreProcessConfig())

    assert buffer == _buffer(pixels)


def test_transparent_pixels_are_untouched():
    buffer = _buffer([(10, 20, 30, 0)])

    apply_pre_processing(buffer, PreProcessConfig(brightness=100, gamma=2.0))

    assert buffer.pixel(0, 0) == (10, 20, 30, 0)


def test_rgb_offset_and_brightness_add_and_clamp():
    buffer = _buffer([(10, 20, 250, 77)])

    apply_pre_processing(buffer, PreProcessConfig(r=5, g=-30, brightness=10))

    assert buffer.pixel(0, 0) == (25, 0, 255, 77)


def test_contrast_factor_formula():
    assert contrast_factor(0) == pytest.approx(1.0)
    assert contrast_factor(100) == pytest.approx((259 * 355) / (255 * 159))


def test_contrast_pivots_around_128():
    buffer = _buffer([(128, 200, 60, 255)])

    apply_pre_processing(buffer, PreProcessConfig(contrast=100))

    assert buffer.pixel(0, 0) == (128, 255, 0, 255)


def test_contrast_runs_after_brightness():
    buffer = _buffer([(100, 100, 100, 255)])

    apply_pre_processing(buffer, PreProcessConfig(brightness=28, contrast=100))

    assert buffer.pixel(0, 0)[:3] == (128, 128, 128)


def test_full_desaturation_uses_rec709_luma():
    buffer = _buffer([(255, 0, 0, 255)])

    apply_pre_processing(buffer, PreProcessConfig(saturation=-100))

    assert buffer.pixel(0, 0)[:3] == (54, 54, 54)


def test_gamma_table():
    assert gamma_table(1.0) is None
    table = gamma_table(2.0)
    assert len(table) == 256
    assert table[0] == 0
    assert table[64] == 128
    assert table[255] == 255


def test_gamma_applied_last():
    buffer = _buffer([(54, 64, 255, 255)])

    apply_pre_processing(buffer, PreProcessConfig(brightness=10, gamma=2.0))

    assert buffer.pixel(0, 0) == (gamma_table(2.0)[64], gamma_table(2.0)[74], 255, 255)


@pytest.mark.parametrize("value, expected", [(0.5, 1), (2.5, 3), (127.5, 128), (12.49, 12), (254.5, 255), (0.0, 0)])
def test_gamma_lookup_rounds_half_up(value, expected):
    assert lut_index(value) == expected
