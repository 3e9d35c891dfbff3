# pather/core.py

import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from pather.connectivity import ConnectivityMap

logger = logging.getLogger(__name__)

# W, E, S, N, NW, NE, SW, SE
DIRECTIONS_8 = [(-1, 0), (1, 0), (0, 1), (0, -1), (-1, -1), (1, -1), (-1, 1), (1, 1)]


class InvalidDimensionsError(ValueError):
    """Raised when a pixel buffer is not a rectangular 8-bit grid of at least 3x3."""


class PixelGrid:
    def __init__(self, data: np.ndarray, min_size: int = 3):
        """
        data: a 2D array of intensities in 0..255 (row-major, data[y, x]).
        The array is copied into a uint8 buffer owned by the grid.
        Nested row sequences are checked for equal lengths before conversion.
        """
        if not isinstance(data, np.ndarray):
            self.check_rows(data)
        try:
            arr = np.asarray(data)
        except ValueError as e:
            raise InvalidDimensionsError(f"Buffer is not rectangular: {e}") from e
        if arr.ndim != 2:
            raise InvalidDimensionsError(f"Expected a 2D buffer, got {arr.ndim} dimensions.")
        height, width = arr.shape
        if height < min_size or width < min_size:
            raise InvalidDimensionsError(
                f"Grid must be at least {min_size}x{min_size}, got {height}x{width}.")
        if arr.dtype != np.uint8:
            if arr.size and (arr.min() < 0 or arr.max() > 255):
                raise InvalidDimensionsError("Intensities must lie in 0..255.")
            arr = arr.astype(np.uint8)
        self.data = np.array(arr, dtype=np.uint8, copy=True)
        self.height, self.width = self.data.shape

    @staticmethod
    def check_rows(rows: Sequence[Sequence[int]]) -> None:
        """Reject empty or ragged nested rows before any pixel is read."""
        if len(rows) == 0:
            raise InvalidDimensionsError("Grid has no rows.")
        if not all(hasattr(row, '__len__') for row in rows):
            raise InvalidDimensionsError("Expected a sequence of rows.")
        width = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != width:
                raise InvalidDimensionsError(
                    f"Row {i} has length {len(row)}, expected {width}.")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'PixelGrid':
        """Build a grid from nested rows, rejecting ragged input before reading any pixel."""
        cls.check_rows(rows)
        return cls(np.array(rows, dtype=np.int64))

    @classmethod
    def from_file(cls, filepath: str) -> 'PixelGrid':
        """Decode a bitmap with Pillow into a single-channel grid."""
        try:
            img = Image.open(filepath).convert('L')  # grayscale
        except (OSError, ValueError) as e:
            raise ValueError(f"Failed to load bitmap {filepath}: {e}") from e
        return cls(np.array(img))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def pixel_count(self) -> int:
        return self.height * self.width

    def __getitem__(self, xy: Tuple[int, int]) -> int:
        x, y = xy
        return int(self.data[y, x])


@dataclass
class Coordinate:
    x: int
    y: int
    parent: Optional[int] = None  # arena index of the discovery predecessor


class CoordinateArena:
    """Growable store of coordinates discovered by one search attempt.

    Ancestors are referenced by index, so the whole chain is released
    together with the arena when the attempt finishes.
    """

    def __init__(self):
        self._cells: List[Coordinate] = []

    def add(self, x: int, y: int, parent: Optional[int] = None) -> int:
        self._cells.append(Coordinate(x, y, parent))
        return len(self._cells) - 1

    def __getitem__(self, index: int) -> Coordinate:
        return self._cells[index]

    def __len__(self) -> int:
        return len(self._cells)

    def ancestry(self, index: int) -> List[Tuple[int, int]]:
        """Walk the parent chain from `index` back to the root, returned root first."""
        chain = []
        current: Optional[int] = index
        while current is not None:
            cell = self._cells[current]
            chain.append((cell.x, cell.y))
            current = cell.parent
        chain.reverse()
        return chain


class SearchQueue:
    """FIFO of arena indices pending visitation."""

    def __init__(self):
        self._items = deque()

    def enqueue(self, index: int) -> None:
        self._items.append(index)

    def dequeue(self) -> int:
        return self._items.popleft()

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)


class PathFinder:
    def __init__(self, connectivity: ConnectivityMap):
        self.connectivity = connectivity

    def discover_start(self, column: int = 1) -> Optional[Tuple[int, int]]:
        """First walkable row scanning `column` top to bottom, as an (x, y) pair."""
        for y in range(self.connectivity.height):
            if self.connectivity.is_available(column, y):
                return column, y
        return None

    def get_neighbors(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        """Available 8-connected neighbours in W, E, S, N, NW, NE, SW, SE order."""
        for dx, dy in DIRECTIONS_8:
            nx, ny = x + dx, y + dy
            if self.connectivity.is_available(nx, ny):
                yield nx, ny

    def bfs(self, start: Tuple[int, int],
            goal_column: Optional[int] = None) -> Tuple[List[Tuple[int, int]], Dict]:
        """Breadth-First Search from `start` to the first cell whose x equals `goal_column`.

        goal_column defaults to width - 2, one pixel inside the right border.
        Returns (path, metrics); path is empty when the goal column is unreachable.
        """
        if goal_column is None:
            goal_column = self.connectivity.width - 2
        arena = CoordinateArena()
        queue = SearchQueue()
        sx, sy = start
        if not self.connectivity.is_available(sx, sy):
            return [], {'visited_nodes': 0, 'path_length': 0}
        self.connectivity.mark_processed(sx, sy)
        queue.enqueue(arena.add(sx, sy))
        visited_nodes = 0
        while not queue.is_empty():
            index = queue.dequeue()
            current = arena[index]
            visited_nodes += 1
            if current.x == goal_column:
                path = arena.ancestry(index)
                metrics = {
                    'visited_nodes': visited_nodes,
                    'path_length': len(path)
                }
                return path, metrics
            for (nx, ny) in self.get_neighbors(current.x, current.y):
                self.connectivity.mark_processed(nx, ny)
                queue.enqueue(arena.add(nx, ny, parent=index))
        logger.debug("BFS from %s exhausted after %d cells", start, visited_nodes)
        return [], {
            'visited_nodes': visited_nodes,
            'path_length': 0
        }
