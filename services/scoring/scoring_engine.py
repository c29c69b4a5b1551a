"""Perceptual pixel comparison between a reference scene and a generated image.

Both images are decoded into square RGBA buffers, alpha-blended onto white and
compared in YIQ space, where luminance differences weigh more than hue noise.
A pixel counts as differing when its YIQ delta exceeds `MAX_YIQ_DELTA *
threshold**2`, unless either image shows an anti-aliasing pattern at that
spot. The similarity score is the share of non-differing pixels as an integer
percentage.

Example:
    engine = ScoringEngine()
    score = engine.score("public/reference-images/city.jpg", generated_data_uri)
"""
from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from services.scoring.image_decoder import ImageRef, decode_image

# Largest possible YIQ delta between two colors (black vs white).
MAX_YIQ_DELTA = 35215.0

# Column-major scan of the 3x3 window; the first match wins on ties.
_NEIGHBOUR_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)
)
_DX = np.array([dx for dx, _ in _NEIGHBOUR_OFFSETS])
_DY = np.array([dy for _, dy in _NEIGHBOUR_OFFSETS])


def _blend(rgba: np.ndarray) -> np.ndarray:
    alpha = rgba[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgba[..., :3].astype(np.float64) - 255.0) * alpha


def _yiq(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    y = r * 0.29889531 + g * 0.58662247 + b * 0.11448223
    i = r * 0.59597799 - g * 0.27417610 - b * 0.32180189
    q = r * 0.21147017 - g * 0.52261711 + b * 0.31114694
    return y, i, q


def _neighbours(values: np.ndarray, fill) -> np.ndarray:
    """Stack the 8 neighbours of every pixel: shape (8, h, w, ...)."""
    h, w = values.shape[:2]
    pad = [(1, 1), (1, 1)] + [(0, 0)] * (values.ndim - 2)
    padded = np.pad(values, pad, mode="constant", constant_values=fill)
    return np.stack([padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w] for dx, dy in _NEIGHBOUR_OFFSETS])


def _border(h: int, w: int) -> np.ndarray:
    mask = np.zeros((h, w), dtype=bool)
    mask[0, :] = mask[-1, :] = True
    mask[:, 0] = mask[:, -1] = True
    return mask


def _has_many_siblings(rgba: np.ndarray, valid: np.ndarray, border: np.ndarray) -> np.ndarray:
    """True where more than two neighbours have exactly the same RGBA value."""
    same = np.all(_neighbours(rgba, 0) == rgba[None], axis=-1) & valid
    return border.astype(np.int32) + same.sum(axis=0) > 2


def _antialiased(
    luma: np.ndarray,
    siblings: np.ndarray,
    other_siblings: np.ndarray,
    valid: np.ndarray,
    border: np.ndarray,
) -> np.ndarray:
    """True where a pixel looks like an anti-aliased edge in the image `luma` belongs to."""
    h, w = luma.shape
    delta = luma[None] - _neighbours(luma, 0.0)
    zeroes = border.astype(np.int32) + np.sum(valid & (delta == 0), axis=0)

    lows = np.where(valid, delta, np.inf)
    highs = np.where(valid, delta, -np.inf)
    low_idx = lows.argmin(axis=0)
    high_idx = highs.argmax(axis=0)
    has_low = np.take_along_axis(lows, low_idx[None], axis=0)[0] < 0
    has_high = np.take_along_axis(highs, high_idx[None], axis=0)[0] > 0

    ys, xs = np.indices((h, w))

    def flat_in_both(idx: np.ndarray) -> np.ndarray:
        ny = np.clip(ys + _DY[idx], 0, h - 1)
        nx = np.clip(xs + _DX[idx], 0, w - 1)
        return siblings[ny, nx] & other_siblings[ny, nx]

    return (zeroes <= 2) & has_low & has_high & (flat_in_both(low_idx) | flat_in_both(high_idx))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ScoringEngine:
    """Score the perceptual similarity of two images on a 0-100 scale.

    Args:
        size: Side of the square buffers both images are stretched to.
        threshold: Matching threshold on a 0-1 scale of the maximum YIQ delta.
        include_antialiased: Count anti-aliased pixels as differing instead of exempting them.
    """

    def __init__(self, size: int = 256, threshold: float = 0.15, include_antialiased: bool = False) -> None:
        if size < 1:
            raise ValueError("Scoring canvas size must be positive.")
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("Threshold must be between 0 and 1.")
        self.size = size
        self.threshold = threshold
        self.include_antialiased = include_antialiased

    @property
    def max_delta(self) -> float:
        return MAX_YIQ_DELTA * self.threshold * self.threshold

    def score(self, reference_ref: ImageRef, candidate_ref: ImageRef) -> int:
        """Decode both images and return their similarity score.

        Raises:
            DecodeError: If either image cannot be decoded.
        """
        reference = decode_image(reference_ref, self.size)
        candidate = decode_image(candidate_ref, self.size)
        return self.score_buffers(reference, candidate)

    def score_buffers(self, first: np.ndarray, second: np.ndarray) -> int:
        """Return the similarity score of two decoded RGBA buffers."""
        total = first.shape[0] * first.shape[1]
        differing = self.count_differing(first, second)
        return max(0, _round_half_up(100 * (1 - differing / total)))

    def count_differing(self, first: np.ndarray, second: np.ndarray) -> int:
        """Return the number of pixels that differ beyond the threshold."""
        if first.shape != second.shape:
            raise ValueError(f"Buffer shapes differ: {first.shape} vs {second.shape}")
        if np.array_equal(first, second):
            return 0

        y1, i1, q1 = _yiq(_blend(first))
        y2, i2, q2 = _yiq(_blend(second))
        delta = 0.5053 * (y1 - y2) ** 2 + 0.299 * (i1 - i2) ** 2 + 0.1957 * (q1 - q2) ** 2
        differing = delta > self.max_delta
        if self.include_antialiased or not differing.any():
            return int(differing.sum())

        h, w = differing.shape
        valid = _neighbours(np.ones((h, w), dtype=bool), False)
        border = _border(h, w)
        siblings_first = _has_many_siblings(first, valid, border)
        siblings_second = _has_many_siblings(second, valid, border)
        antialiased = _antialiased(y1, siblings_first, siblings_second, valid, border) | _antialiased(
            y2, siblings_second, siblings_first, valid, border
        )
        return int((differing & ~antialiased).sum())
