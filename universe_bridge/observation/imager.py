"""Observation imager: raw RGB screen buffers → fixed-shape intensity tensors.

Pipeline per frame:
    1. Validate the raw byte count against the native resolution (3 channels)
    2. Grayscale (optional): plain mean of each pixel's 3 channel bytes
    3. Convert to a torch tensor on the imager's device/dtype
    4. Bilinear resize to (resized_h, resized_w)
    5. Zero-pad to exactly (out_h, out_w)
    6. Round every element to the nearest integer

Geometry (computed once, at construction):
    scale = max(native_w / out_w, native_h / out_h)
    resized = round(native / scale)          # never exceeds the output size
    pad = out - resized → (pad // 2) leading, remainder trailing

The larger ratio wins so the frame is shrunk to fit without cropping or
stretching; the short side is padded instead.

Public API:
    space = ObservationSpace(width=800, height=512)
    imager = space.imager(200, 200, grayscale=True)
    obs = imager.image(raw_bytes)            # → (200, 200, 1) float32

Output layout is row-major, channel-interleaved (H, W, C), like the raw frame.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
import torch
import torch.nn.functional as F

from universe_bridge.utils.compute import round_half_away, split_padding
from universe_bridge.utils.torch_utils import resolve_device

logger = logging.getLogger(__name__)

# Source frames are always RGB
NATIVE_DEPTH = 3

RawFrame = Union[bytes, bytearray, memoryview, np.ndarray, torch.Tensor]


@dataclass(frozen=True)
class ObservationSpace:
    """Native frame resolution of an environment.

    Parameters
    ----------
    width, height : int
        Native frame size in pixels.
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Observation size must be positive, got {self.width}x{self.height}"
            )

    @property
    def frame_bytes(self) -> int:
        """Expected raw frame length in bytes."""
        return self.width * self.height * NATIVE_DEPTH

    def imager(
        self,
        width: int,
        height: int,
        grayscale: bool,
        *,
        dtype: torch.dtype = torch.float32,
        device: Union[str, torch.device, None] = "cpu"
    ) -> Imager:
        """Create an Imager producing exactly (height, width, depth) tensors.

        Parameters
        ----------
        width, height : int
            Requested output size in pixels.
        grayscale : bool
            Merge color channels (depth 1) instead of keeping RGB (depth 3).
        dtype : torch.dtype
            Floating point dtype of the output tensors, default float32.
        device : str | torch.device | None
            Device of the output tensors, default CPU.

        Raises
        ------
        ValueError
            If the requested size is not positive or dtype is not floating point.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Output size must be positive, got {width}x{height}")
        if not dtype.is_floating_point:
            raise ValueError(f"Imager dtype must be floating point, got {dtype}")

        width_factor = self.width / width
        height_factor = self.height / height
        factor = max(width_factor, height_factor)

        # Float error may land a hair above the target; clamp to [1, out].
        resized_width = min(max(round_half_away(self.width / factor), 1), width)
        resized_height = min(max(round_half_away(self.height / factor), 1), height)

        pad_left, pad_right = split_padding(width - resized_width)
        pad_top, pad_bottom = split_padding(height - resized_height)

        imager = Imager(
            native_width=self.width,
            native_height=self.height,
            out_width=width,
            out_height=height,
            resized_width=resized_width,
            resized_height=resized_height,
            pad_top=pad_top,
            pad_bottom=pad_bottom,
            pad_left=pad_left,
            pad_right=pad_right,
            grayscale=grayscale,
            dtype=dtype,
            device=resolve_device(device),
        )
        logger.debug(
            "Imager %dx%d → resize %dx%d → pad (t=%d b=%d l=%d r=%d) → %dx%dx%d",
            self.width, self.height, resized_width, resized_height,
            pad_top, pad_bottom, pad_left, pad_right,
            width, height, imager.depth,
        )
        return imager

    def imager_for_screen_size(
        self,
        screen_size: int,
        color: bool = False,
        **kwargs
    ) -> Imager:
        """Create an Imager whose longest side is ``screen_size``.

        The other side keeps the native aspect ratio, so no padding is
        needed beyond rounding. Grayscale unless ``color`` is set.
        """
        if screen_size <= 0:
            raise ValueError(f"screen_size must be positive, got {screen_size}")
        downscale = max(self.width, self.height) / screen_size
        width = max(round_half_away(self.width / downscale), 1)
        height = max(round_half_away(self.height / downscale), 1)
        return self.imager(width, height, grayscale=not color, **kwargs)


@dataclass(frozen=True)
class Imager:
    """Deterministic resize + pad transform for one observation space.

    Build through ObservationSpace.imager(); the fields are the geometry
    derived there. Immutable and safe to share between threads.
    """

    native_width: int
    native_height: int
    out_width: int
    out_height: int
    resized_width: int
    resized_height: int
    pad_top: int
    pad_bottom: int
    pad_left: int
    pad_right: int
    grayscale: bool
    dtype: torch.dtype = torch.float32
    device: torch.device = torch.device("cpu")

    @property
    def depth(self) -> int:
        return 1 if self.grayscale else NATIVE_DEPTH

    @property
    def output_shape(self) -> Tuple[int, int, int]:
        """Tensor shape returned by image(): (out_height, out_width, depth)."""
        return (self.out_height, self.out_width, self.depth)

    def out_size(self) -> Tuple[int, int, int]:
        """Output dimensions as (width, height, depth)."""
        return (self.out_width, self.out_height, self.depth)

    def image(self, raw_frame: RawFrame) -> torch.Tensor:
        """Convert one raw RGB frame into an intensity tensor.

        Parameters
        ----------
        raw_frame : bytes | bytearray | memoryview | np.ndarray | torch.Tensor
            Unsigned byte samples, row-major, RGB-interleaved, exactly
            native_width * native_height * 3 of them.

        Returns
        -------
        torch.Tensor
            Shape (out_height, out_width, depth), rounded to integer values
            in [0, 255].

        Raises
        ------
        ValueError
            If the frame has the wrong size or is not uint8.
        """
        pixels = self._to_pixels(raw_frame)

        if self.grayscale:
            pixels = pixels.mean(axis=-1, keepdims=True)

        x = torch.from_numpy(pixels).to(device=self.device, dtype=self.dtype)
        x = x.permute(2, 0, 1).unsqueeze(0)  # (1, C, H, W)

        if (self.resized_height, self.resized_width) != (self.native_height, self.native_width):
            x = F.interpolate(
                x,
                size=(self.resized_height, self.resized_width),
                mode="bilinear",
                align_corners=False,
            )

        x = F.pad(x, (self.pad_left, self.pad_right, self.pad_top, self.pad_bottom), value=0.0)
        x = torch.round(x)

        return x.squeeze(0).permute(1, 2, 0).contiguous()

    def _to_pixels(self, raw_frame: RawFrame) -> np.ndarray:
        """Validate a raw frame and view it as (H, W, 3) float64."""
        if isinstance(raw_frame, (bytes, bytearray, memoryview)):
            data = np.frombuffer(raw_frame, dtype=np.uint8)
        elif isinstance(raw_frame, torch.Tensor):
            data = raw_frame.detach().cpu().numpy()
        else:
            data = np.asarray(raw_frame)

        if data.dtype != np.uint8:
            raise ValueError(f"Raw frame must contain uint8 samples, got {data.dtype}")

        expected = self.native_width * self.native_height * NATIVE_DEPTH
        if data.size != expected:
            raise ValueError(
                f"Raw frame has {data.size} bytes, expected "
                f"{self.native_width}x{self.native_height}x{NATIVE_DEPTH} = {expected}"
            )

        return data.reshape(self.native_height, self.native_width, NATIVE_DEPTH).astype(np.float64)
