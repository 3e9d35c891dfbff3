# pather/threshold.py

import logging
from typing import Tuple

import numpy as np

from pather.connectivity import WALKABLE, WALL

logger = logging.getLogger(__name__)

LEVELS = 256


def histogram(data: np.ndarray) -> np.ndarray:
    """Count occurrences of each of the 256 intensity levels."""
    return np.bincount(np.asarray(data, dtype=np.uint8).ravel(), minlength=LEVELS).astype(np.int64)


def between_class_variance(hist: np.ndarray, pixel_count: int = None) -> np.ndarray:
    """
    Otsu score for every level t: (mu_T * w(t) - mu(t))^2 / (w(t) * (1 - w(t))).
    Levels where w(t) is 0 or 1 score 0.
    """
    hist = np.asarray(hist, dtype=np.int64)
    if pixel_count is None:
        pixel_count = int(hist.sum())
    sigma = np.zeros(LEVELS, dtype=np.float64)
    if pixel_count <= 0:
        return sigma
    levels = np.arange(LEVELS, dtype=np.float64)
    omega = np.cumsum(hist) / pixel_count
    mu = np.cumsum(hist * levels) / pixel_count
    mu_total = mu[-1]
    valid = (omega > 0.0) & (omega < 1.0)
    sigma[valid] = (mu_total * omega[valid] - mu[valid]) ** 2 / (omega[valid] * (1.0 - omega[valid]))
    return sigma


def otsu_separation(hist: np.ndarray, pixel_count: int = None) -> Tuple[int, float]:
    """Best Otsu level and its score; a score of 0 means the histogram has a single class."""
    sigma = between_class_variance(hist, pixel_count)
    level = int(np.argmax(sigma))
    return level, float(sigma[level])


def otsu_threshold(hist: np.ndarray, pixel_count: int = None) -> int:
    """
    Otsu's method: the level maximizing the between-class variance.
    A uniform image yields 0. Ties go to the smallest t.
    """
    return otsu_separation(hist, pixel_count)[0]


def intensity_stats(hist: np.ndarray) -> Tuple[float, float]:
    """Mean and population standard deviation of the intensities counted in `hist`."""
    hist = np.asarray(hist, dtype=np.float64)
    total = hist.sum()
    if total == 0:
        return 0.0, 0.0
    levels = np.arange(LEVELS, dtype=np.float64)
    mean = float((hist * levels).sum() / total)
    variance = float((hist * (levels - mean) ** 2).sum() / total)
    return mean, float(np.sqrt(variance))


def equalize(data: np.ndarray, hist: np.ndarray = None) -> np.ndarray:
    """Full-image histogram equalization: each pixel p becomes round(CDF[p] * 255), halves up."""
    data = np.asarray(data, dtype=np.uint8)
    if hist is None:
        hist = histogram(data)
    mean, std = intensity_stats(hist)
    logger.debug("Equalizing image: mean=%.2f std=%.2f", mean, std)
    cdf = np.cumsum(hist) / data.size
    lut = np.clip(np.floor(cdf * 255.0 + 0.5), 0, 255).astype(np.uint8)
    return lut[data]


def seal_border(mask: np.ndarray, width: int = 1) -> np.ndarray:
    """Force a band of `width` pixels around the mask to wall, in place."""
    mask[:width, :] = WALL
    mask[-width:, :] = WALL
    mask[:, :width] = WALL
    mask[:, -width:] = WALL
    return mask


def neighbor_mean(data: np.ndarray) -> np.ndarray:
    """Unweighted 3x3 mean for every interior pixel, shape (h - 2, w - 2)."""
    src = np.asarray(data, dtype=np.float64)
    h, w = src.shape
    total = np.zeros((h - 2, w - 2), dtype=np.float64)
    for dy in range(3):
        for dx in range(3):
            total += src[dy:h - 2 + dy, dx:w - 2 + dx]
    return total / 9.0


def binarize(data: np.ndarray, threshold: int, neighbor_average: bool = False,
             dark_is_walkable: bool = True, seal_width: int = 1) -> np.ndarray:
    """
    Map interior pixels to {0, 255} against `threshold` and seal the border.

    With dark_is_walkable, a pixel above the threshold becomes wall (0) and
    anything else walkable (255); otherwise the polarity is flipped.
    The source buffer is never written to.
    """
    src = np.asarray(data)
    mask = np.zeros(src.shape, dtype=np.uint8)
    if neighbor_average:
        values = neighbor_mean(src)
    else:
        values = src[1:-1, 1:-1]
    above = values > threshold
    walkable = ~above if dark_is_walkable else above
    mask[1:-1, 1:-1] = np.where(walkable, WALKABLE, WALL)
    return seal_border(mask, seal_width)
