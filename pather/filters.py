# pather/filters.py

import numpy as np

SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]], dtype=np.int32)
SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.int32)

# Largest absolute response of either kernel over 8-bit input
KERNEL_RANGE = 1020


def convolve3x3(data: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Apply a 3x3 kernel to every interior pixel; returns an (h - 2, w - 2) array."""
    src = np.asarray(data, dtype=np.int32)
    h, w = src.shape
    out = np.zeros((h - 2, w - 2), dtype=np.int32)
    for ky in range(3):
        for kx in range(3):
            weight = kernel[ky, kx]
            if weight:
                out += weight * src[ky:h - 2 + ky, kx:w - 2 + kx]
    return out


def normalize_response(response: np.ndarray) -> np.ndarray:
    """Linearly map kernel output from [-1020, 1020] to [0, 255]."""
    return (response.astype(np.float64) + KERNEL_RANGE) * 255.0 / (2 * KERNEL_RANGE)


def sobel(data: np.ndarray) -> np.ndarray:
    """
    Sobel gradient magnitude of the interior pixels.
    Border pixels keep their source value; the source buffer is not modified.
    """
    src = np.asarray(data, dtype=np.uint8)
    gy = normalize_response(convolve3x3(src, SOBEL_Y))
    gx = normalize_response(convolve3x3(src, SOBEL_X))
    magnitude = np.sqrt(gy ** 2 + gx ** 2)
    out = src.copy()
    out[1:-1, 1:-1] = np.clip(np.ceil(magnitude), 0, 255).astype(np.uint8)
    return out
