import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


@pytest.fixture
def corridor_image():
    """10x10 bright page with a dark corridor along row 5."""
    img = np.full((10, 10), 255, dtype=np.uint8)
    img[5, 1:9] = 0
    return img


@pytest.fixture
def gapped_mask():
    """7x9 binarized grid: row 3 walkable except a single-pixel break at x=4."""
    mask = np.zeros((7, 9), dtype=np.uint8)
    mask[3, 1:4] = 255
    mask[3, 5:8] = 255
    return mask
