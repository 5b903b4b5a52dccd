"""Tests for the observation imager (universe_bridge.observation.imager).

Covers:
    - Geometry: scale factor, resized size, leading/trailing padding split
    - Shape invariant across many native/output resolutions
    - Pixel pipeline: grayscale mean, constant frames, zero padding, rounding
    - Accepted raw frame types and fail-fast on wrong size / dtype
    - imager_for_screen_size() (longest side)
    - Concurrent image() calls

Run:
    pytest tests/test_imager.py -v
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
import torch

from universe_bridge.observation import NATIVE_DEPTH, ObservationSpace
from universe_bridge.utils.torch_utils import seed_everything


def _frame(width, height, value=None, seed=0):
    if value is not None:
        return np.full(width * height * NATIVE_DEPTH, value, dtype=np.uint8)
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=width * height * NATIVE_DEPTH, dtype=np.uint8)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class TestGeometry:

    def test_dusk_drive_scenario(self):
        """800x512 → 200x200 gray: factor 4.0 wins over 2.56."""
        imager = ObservationSpace(800, 512).imager(200, 200, grayscale=True)
        assert (imager.resized_width, imager.resized_height) == (200, 128)
        assert (imager.pad_top, imager.pad_bottom) == (36, 36)
        assert (imager.pad_left, imager.pad_right) == (0, 0)
        assert imager.output_shape == (200, 200, 1)
        assert imager.out_size() == (200, 200, 1)

    def test_portrait_pads_horizontally(self):
        imager = ObservationSpace(512, 800).imager(200, 200, grayscale=False)
        assert (imager.resized_width, imager.resized_height) == (128, 200)
        assert (imager.pad_left, imager.pad_right) == (36, 36)
        assert imager.depth == 3

    def test_odd_padding_goes_trailing(self):
        imager = ObservationSpace(3, 2).imager(4, 4, grayscale=True)
        assert (imager.resized_width, imager.resized_height) == (4, 3)
        assert (imager.pad_top, imager.pad_bottom) == (0, 1)

    @pytest.mark.parametrize("native", [(800, 512), (640, 480), (37, 91), (1, 1), (160, 210)])
    @pytest.mark.parametrize("out", [(200, 200), (84, 84), (10, 3), (1, 1), (320, 17)])
    def test_padding_invariants(self, native, out):
        imager = ObservationSpace(*native).imager(*out, grayscale=True)
        pad_h = imager.out_height - imager.resized_height
        pad_w = imager.out_width - imager.resized_width
        assert pad_h >= 0 and pad_w >= 0
        assert imager.pad_top == pad_h // 2
        assert imager.pad_top + imager.pad_bottom == pad_h
        assert imager.pad_left == pad_w // 2
        assert imager.pad_left + imager.pad_right == pad_w

    def test_invalid_sizes(self):
        with pytest.raises(ValueError, match="positive"):
            ObservationSpace(0, 10)
        with pytest.raises(ValueError, match="positive"):
            ObservationSpace(10, 10).imager(0, 5, grayscale=True)

    def test_integer_dtype_rejected(self):
        with pytest.raises(ValueError, match="floating point"):
            ObservationSpace(10, 10).imager(5, 5, grayscale=True, dtype=torch.uint8)


class TestScreenSize:

    def test_longest_side(self):
        imager = ObservationSpace(800, 512).imager_for_screen_size(200)
        assert imager.out_size() == (200, 128, 1)
        assert (imager.pad_top, imager.pad_bottom, imager.pad_left, imager.pad_right) == (0, 0, 0, 0)

    def test_color(self):
        imager = ObservationSpace(512, 800).imager_for_screen_size(100, color=True)
        assert imager.out_size() == (64, 100, 3)

    def test_invalid(self):
        with pytest.raises(ValueError, match="screen_size"):
            ObservationSpace(10, 10).imager_for_screen_size(0)


# ---------------------------------------------------------------------------
# Pixel pipeline
# ---------------------------------------------------------------------------


class TestImage:

    @pytest.mark.parametrize("native", [(800, 512), (37, 91), (1, 1)])
    @pytest.mark.parametrize("out", [(200, 200), (10, 3), (1, 1)])
    @pytest.mark.parametrize("grayscale", [True, False])
    def test_shape_invariant(self, native, out, grayscale):
        imager = ObservationSpace(*native).imager(*out, grayscale=grayscale)
        obs = imager.image(_frame(*native))
        assert tuple(obs.shape) == (out[1], out[0], 1 if grayscale else 3)
        assert obs.dtype == torch.float32

    def test_constant_frame_with_zero_padding(self):
        imager = ObservationSpace(800, 512).imager(200, 200, grayscale=True)
        obs = imager.image(_frame(800, 512, value=100))
        assert torch.all(obs[:36] == 0)
        assert torch.all(obs[164:] == 0)
        assert torch.all(obs[36:164] == 100)

    def test_trailing_pad_row_is_zero(self):
        imager = ObservationSpace(3, 2).imager(4, 4, grayscale=False)
        obs = imager.image(_frame(3, 2, value=255))
        assert torch.all(obs[:3] == 255)
        assert torch.all(obs[3] == 0)

    def test_identity_when_sizes_match(self):
        frame = _frame(5, 4, seed=3)
        obs = ObservationSpace(5, 4).imager(5, 4, grayscale=False).image(frame)
        expected = torch.from_numpy(frame.reshape(4, 5, 3).astype(np.float32))
        assert torch.equal(obs, expected)

    def test_grayscale_is_channel_mean(self):
        frame = np.array([10, 20, 30, 1, 2, 2], dtype=np.uint8)
        obs = ObservationSpace(2, 1).imager(2, 1, grayscale=True).image(frame)
        assert obs.shape == (1, 2, 1)
        assert obs[0, 0, 0].item() == 20.0
        assert obs[0, 1, 0].item() == 2.0  # 5/3 rounds to 2

    def test_values_are_integers_in_byte_range(self):
        imager = ObservationSpace(37, 91).imager(20, 20, grayscale=False)
        obs = imager.image(_frame(37, 91, seed=9))
        assert torch.equal(obs, torch.round(obs))
        assert obs.min() >= 0 and obs.max() <= 255

    def test_float64_output(self):
        imager = ObservationSpace(4, 4).imager(2, 2, grayscale=True, dtype=torch.float64)
        assert imager.image(_frame(4, 4)).dtype == torch.float64

    @pytest.mark.parametrize("convert", [
        bytes,
        bytearray,
        lambda a: memoryview(a.tobytes()),
        lambda a: a,
        lambda a: a.reshape(2, 3, 3),
        torch.from_numpy,
    ])
    def test_accepted_frame_types(self, convert):
        frame = _frame(3, 2, seed=1)
        imager = ObservationSpace(3, 2).imager(3, 2, grayscale=False)
        expected = imager.image(frame)
        assert torch.equal(imager.image(convert(frame)), expected)

    def test_wrong_size_rejected(self):
        imager = ObservationSpace(4, 4).imager(2, 2, grayscale=True)
        with pytest.raises(ValueError, match="expected 4x4x3"):
            imager.image(_frame(4, 3))

    def test_wrong_dtype_rejected(self):
        imager = ObservationSpace(2, 2).imager(2, 2, grayscale=True)
        with pytest.raises(ValueError, match="uint8"):
            imager.image(np.zeros(12, dtype=np.float32))

    def test_frame_bytes(self):
        assert ObservationSpace(800, 512).frame_bytes == 800 * 512 * 3


def test_concurrent_image_matches_sequential():
    seed_everything(4)
    imager = ObservationSpace(160, 210).imager(84, 84, grayscale=True)
    frames = [_frame(160, 210, seed=i) for i in range(16)]
    expected = [imager.image(f) for f in frames]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(imager.image, frames))

    for got, want in zip(results, expected):
        assert torch.equal(got, want)
