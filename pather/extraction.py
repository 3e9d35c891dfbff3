# pather/extraction.py

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from pather.connectivity import WALKABLE, ConnectivityMap, dilate
from pather.core import InvalidDimensionsError, PathFinder, PixelGrid
from pather.filters import sobel
from pather.threshold import binarize, equalize, histogram, otsu_separation, seal_border

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 99
OTSU = "otsu"


class ErrorKind(Enum):
    INVALID_DIMENSIONS = "invalid_dimensions"
    NO_WALKABLE_START = "no_walkable_start"
    PATH_NOT_FOUND = "path_not_found"
    DEGENERATE_THRESHOLD = "degenerate_threshold"  # reported as a warning only


class ExtractionState(Enum):
    SEARCHING = "searching"
    FOUND = "found"
    EXHAUSTED = "exhausted"


@dataclass
class ExtractionConfig:
    """Settings for one path extraction."""

    max_retries: int = 2  # additional attempts after the first
    threshold: Union[int, str] = DEFAULT_THRESHOLD  # 0-255 or "otsu"
    use_edge_filter: bool = False  # Sobel pass before binarization
    border_seal_width: int = 1
    neighbor_average: bool = False  # compare the 3x3 mean instead of the pixel
    equalize: bool = False  # histogram equalization before thresholding
    dark_is_walkable: bool = True
    dilation_passes: int = 2  # dilations applied between attempts
    extend_to_edges: bool = True  # pad the path out to columns 0 and width - 1

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if isinstance(self.threshold, str):
            if self.threshold != OTSU:
                raise ValueError(f"Unknown threshold mode {self.threshold!r}")
        elif not 0 <= self.threshold <= 255:
            raise ValueError("threshold must lie in 0..255")
        if self.border_seal_width < 1:
            raise ValueError("border_seal_width must be >= 1")
        if self.dilation_passes < 1:
            raise ValueError("dilation_passes must be >= 1")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


@dataclass
class ExtractionResult:
    state: ExtractionState
    path: List[Tuple[int, int]] = field(default_factory=list)
    steps: int = -1
    attempts: int = 0
    threshold: Optional[int] = None
    error: Optional[ErrorKind] = None
    warnings: List[ErrorKind] = field(default_factory=list)
    attempt_metrics: List[Dict] = field(default_factory=list)
    mask: Optional[np.ndarray] = None  # binarized grid as it stood at the last attempt

    @property
    def ok(self) -> bool:
        return self.state == ExtractionState.FOUND


class PathExtractor:
    def __init__(self, config: ExtractionConfig = None):
        self.config = config or ExtractionConfig()

    def select_threshold(self, data: np.ndarray, result: ExtractionResult) -> int:
        if self.config.threshold != OTSU:
            return int(self.config.threshold)
        level, score = otsu_separation(histogram(data), data.size)
        if score == 0.0:
            logger.warning("Otsu found no separation between intensity classes, threshold is 0")
            result.warnings.append(ErrorKind.DEGENERATE_THRESHOLD)
        return level

    def prepare_mask(self, grid: PixelGrid, result: ExtractionResult) -> np.ndarray:
        """Equalize / filter as configured, then binarize with a sealed border."""
        data = grid.data
        if self.config.equalize:
            data = equalize(data)
        if self.config.use_edge_filter:
            data = sobel(data)
        result.threshold = self.select_threshold(data, result)
        logger.debug("Binarizing %dx%d grid at threshold %d", grid.width, grid.height, result.threshold)
        return binarize(data, result.threshold,
                        neighbor_average=self.config.neighbor_average,
                        dark_is_walkable=self.config.dark_is_walkable,
                        seal_width=self.config.border_seal_width)

    def extend_to_edges(self, cells: List[Tuple[int, int]], width: int) -> List[Tuple[int, int]]:
        """Pad the path with boundary coordinates so it spans column 0 to width - 1."""
        (start_x, start_y), (goal_x, goal_y) = cells[0], cells[-1]
        head = [(x, start_y) for x in range(0, start_x)]
        tail = [(x, goal_y) for x in range(goal_x + 1, width)]
        return head + cells + tail

    def extract(self, grid: Union[PixelGrid, np.ndarray]) -> ExtractionResult:
        result = ExtractionResult(state=ExtractionState.SEARCHING)
        seal = self.config.border_seal_width
        try:
            if not isinstance(grid, PixelGrid):
                grid = PixelGrid(grid)
            if min(grid.height, grid.width) < 2 * seal + 1:
                raise InvalidDimensionsError(
                    f"{grid.height}x{grid.width} grid leaves no interior inside a {seal}-pixel seal.")
        except InvalidDimensionsError as e:
            logger.warning("Rejecting grid: %s", e)
            result.state = ExtractionState.EXHAUSTED
            result.error = ErrorKind.INVALID_DIMENSIONS
            return result

        mask = self.prepare_mask(grid, result)
        result.mask = mask
        start_column = seal
        goal_column = grid.width - 1 - seal

        if not np.any(mask[:, start_column] == WALKABLE):
            logger.warning("No walkable pixel in start column %d", start_column)
            result.state = ExtractionState.EXHAUSTED
            result.error = ErrorKind.NO_WALKABLE_START
            return result

        for attempt in range(1, self.config.max_attempts + 1):
            result.attempts = attempt
            pathfinder = PathFinder(ConnectivityMap.from_binary(mask))
            start = pathfinder.discover_start(start_column)
            if start is None:
                cells, metrics = [], {'visited_nodes': 0, 'path_length': 0}
            else:
                cells, metrics = pathfinder.bfs(start, goal_column)
            metrics['attempt'] = attempt
            result.attempt_metrics.append(metrics)
            if cells:
                logger.info("Found path on attempt %d (%d cells)", attempt, len(cells))
                path = self.extend_to_edges(cells, grid.width) if self.config.extend_to_edges else cells
                result.state = ExtractionState.FOUND
                result.path = path
                result.steps = len(path) - 1
                return result
            if attempt == self.config.max_attempts:
                break
            logger.info("No path on attempt %d, dilating %d times", attempt, self.config.dilation_passes)
            for _ in range(self.config.dilation_passes):
                dilate(mask)
            seal_border(mask, seal)

        logger.warning("Iteration limit exceeded after %d attempts", result.attempts)
        result.state = ExtractionState.EXHAUSTED
        result.error = ErrorKind.PATH_NOT_FOUND
        return result


def extract_path(grid: Union[PixelGrid, np.ndarray], config: ExtractionConfig = None) -> ExtractionResult:
    """Run a single extraction with `config` (defaults when omitted)."""
    return PathExtractor(config).extract(grid)
