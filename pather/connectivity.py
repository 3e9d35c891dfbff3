# pather/connectivity.py

from enum import IntEnum

import numpy as np

WALKABLE = 255
WALL = 0


class CellState(IntEnum):
    AVAILABLE = 0
    PROCESSED = 1
    BLOCKED = 2


class ConnectivityMap:
    def __init__(self, states: np.ndarray):
        """
        states: a 2D array of CellState values, indexed states[y, x].
        """
        self.states = states
        self.height, self.width = states.shape

    @classmethod
    def from_binary(cls, mask: np.ndarray) -> 'ConnectivityMap':
        """Walkable (255) pixels become AVAILABLE, everything else BLOCKED."""
        mask = np.asarray(mask)
        states = np.where(mask == WALKABLE, CellState.AVAILABLE, CellState.BLOCKED).astype(np.int8)
        return cls(states)

    def in_bounds(self, x: int, y: int) -> bool:
        return (0 <= x < self.width) and (0 <= y < self.height)

    def state(self, x: int, y: int) -> CellState:
        return CellState(int(self.states[y, x]))

    def is_available(self, x: int, y: int) -> bool:
        """Check if a position is within bounds, walkable and not yet claimed."""
        return self.in_bounds(x, y) and self.states[y, x] == CellState.AVAILABLE

    def mark_processed(self, x: int, y: int) -> None:
        if self.states[y, x] != CellState.AVAILABLE:
            raise ValueError(f"Cell ({x}, {y}) is {self.state(x, y).name}, not AVAILABLE.")
        self.states[y, x] = CellState.PROCESSED

    def count(self, state: CellState) -> int:
        return int(np.count_nonzero(self.states == state))


def dilate(mask: np.ndarray) -> np.ndarray:
    """Grow walkable regions of a binarized mask by one 4-connected layer, in place.

    Promotions are computed from the mask as it stood before the pass, so
    growth never cascades within one call.
    """
    walkable = mask == WALKABLE
    grow = np.zeros_like(walkable)
    grow[:-1, :] |= walkable[1:, :]
    grow[1:, :] |= walkable[:-1, :]
    grow[:, :-1] |= walkable[:, 1:]
    grow[:, 1:] |= walkable[:, :-1]
    mask[grow & (mask == WALL)] = WALKABLE
    return mask
