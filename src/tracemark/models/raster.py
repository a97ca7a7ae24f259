"""Read-only raster buffer wrapper."""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

# Rec. 709 luma weights
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722

CHANNEL_ORDERS = {
    # order: (channel count, (r, g, b) indices)
    "GRAY": (1, None),
    "RGB": (3, (0, 1, 2)),
    "RGBA": (4, (0, 1, 2)),
    "BGR": (3, (2, 1, 0)),
    "BGRA": (4, (2, 1, 0)),
}


@dataclass(frozen=True)
class RasterBuffer:
    """
    A width x height grid of pixel samples owned by the caller.

    The engine only reads sub-regions of ``pixels``; it never writes to it.

    Attributes:
        pixels: uint8 array, (H, W) for grayscale or (H, W, C) for color
        channel_order: One of "GRAY", "RGB", "RGBA", "BGR", "BGRA"
    """
    pixels: np.ndarray
    channel_order: str = "RGBA"

    def __post_init__(self):
        if self.channel_order not in CHANNEL_ORDERS:
            raise ValueError(f"Unknown channel order: {self.channel_order}")
        channels, _ = CHANNEL_ORDERS[self.channel_order]
        ndim = self.pixels.ndim
        if channels == 1:
            if ndim == 3 and self.pixels.shape[2] == 1:
                object.__setattr__(self, "pixels", self.pixels[:, :, 0])
            elif ndim != 2:
                raise ValueError(f"GRAY buffer must be 2-D, got shape {self.pixels.shape}")
        elif ndim != 3 or self.pixels.shape[2] != channels:
            raise ValueError(
                f"{self.channel_order} buffer needs shape (H, W, {channels}), "
                f"got {self.pixels.shape}"
            )
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise ValueError("Raster buffer must not be empty")

    @classmethod
    def from_bgr(cls, image: np.ndarray) -> "RasterBuffer":
        """Wrap an image loaded by OpenCV (BGR, BGRA or grayscale)."""
        if image.ndim == 2:
            return cls(image, "GRAY")
        order = "BGRA" if image.shape[2] == 4 else "BGR"
        return cls(image, order)

    @classmethod
    def from_rgba(cls, data, width: int, height: int) -> "RasterBuffer":
        """Wrap flat RGBA bytes (as delivered by a canvas) without copying."""
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4)
        return cls(pixels, "RGBA")

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _luminance(self, samples: np.ndarray) -> np.ndarray:
        _, rgb = CHANNEL_ORDERS[self.channel_order]
        if rgb is None:
            return samples.astype(np.float64)
        r, g, b = rgb
        return (LUMA_R * samples[..., r].astype(np.float64)
                + LUMA_G * samples[..., g]
                + LUMA_B * samples[..., b])

    def luminance_grid(self, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
        """
        Luminance of the pixels at every (ys[i], xs[j]) pair.

        Index arrays may repeat entries, which is how callers replicate edge
        pixels when a sampling window runs past the border.

        Returns:
            Float array of shape (len(ys), len(xs))
        """
        return self._luminance(self.pixels[np.ix_(ys, xs)])

    def luminance_region(self, x0: int, y0: int, x1: int, y1: int) -> np.ndarray:
        """Luminance of the inclusive rectangle [x0, x1] x [y0, y1]."""
        return self._luminance(self.pixels[y0:y1 + 1, x0:x1 + 1])

    def crop_rgba(self, x: int, y: int, w: int, h: int) -> np.ndarray:
        """Contiguous RGBA copy of a sub-rectangle (always a new array)."""
        region = self.pixels[y:y + h, x:x + w]
        channels, rgb = CHANNEL_ORDERS[self.channel_order]
        out = np.empty(region.shape[:2] + (4,), dtype=np.uint8)
        if rgb is None:
            out[..., :3] = region[..., np.newaxis]
        else:
            out[..., :3] = region[..., list(rgb)]
        out[..., 3] = region[..., 3] if channels == 4 else 255
        return out
