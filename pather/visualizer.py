# pather/visualizer.py

import os
from typing import Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from PIL import Image

PATH_COLOR = (255, 0, 0)


def render_path(data: np.ndarray, path: Sequence[Tuple[int, int]],
                color: Tuple[int, int, int] = PATH_COLOR) -> np.ndarray:
    """Return an RGB copy of a grayscale buffer with the path cells painted in `color`."""
    gray = np.asarray(data, dtype=np.uint8)
    rgb = np.stack([gray, gray, gray], axis=-1)
    height, width = gray.shape
    for x, y in path:
        if 0 <= x < width and 0 <= y < height:
            rgb[y, x] = color
    return rgb


def save_path_image(filepath: str, data: np.ndarray, path: Sequence[Tuple[int, int]]) -> None:
    """Write the path overlay as a bitmap (format taken from the file extension)."""
    Image.fromarray(render_path(data, path)).save(filepath)


class Visualizer:
    @staticmethod
    def plot_grid_with_path(grid, path, title="", ax=None):
        """Plot a grayscale or binarized grid with the extracted path on top."""
        if ax is None:
            _, ax = plt.subplots()
        ax.imshow(grid, cmap='gray', vmin=0, vmax=255)  # 255=walkable (white), 0=wall
        if path:
            # path is a list of (x,y) pairs; matplotlib image axes: y->row, x->col
            path_x, path_y = zip(*path)
            ax.plot(path_x, path_y, 'r-', linewidth=2, label='Path')
            ax.legend()
        ax.set_title(title)
        return ax

    @staticmethod
    def plot_attempts(original, mask, path, map_name, out_dir="analysis_plots", show=False):
        """
        Plot the source bitmap next to the binarized grid the final attempt searched.
        Returns the path of the saved figure.
        """
        fig, axes = plt.subplots(1, 2, figsize=(12, 5))
        Visualizer.plot_grid_with_path(original, [], title="Source", ax=axes[0])
        Visualizer.plot_grid_with_path(mask, path, title="Binarized", ax=axes[1])
        fig.suptitle(map_name, fontsize=14)
        plt.tight_layout()
        os.makedirs(out_dir, exist_ok=True)
        base = os.path.splitext(os.path.basename(map_name))[0]
        save_path = os.path.join(out_dir, f"{base}_attempts.png")
        fig.savefig(save_path, dpi=150)
        if show:
            plt.show()
        plt.close(fig)
        return save_path

    @staticmethod
    def plot_attempt_metrics(attempts_df: pd.DataFrame, out_dir="analysis_plots"):
        """
        Cells visited on each search attempt, and the attempt on which each
        extraction succeeded, split by threshold mode.
        """
        os.makedirs(out_dir, exist_ok=True)
        fig, axes = plt.subplots(2, 1, figsize=(10, 10))
        sns.lineplot(data=attempts_df, x='attempt', y='visited_nodes', hue='mode',
                     marker='o', ax=axes[0])
        axes[0].set_title("Visited Cells per Attempt")
        axes[0].set_xticks(sorted(attempts_df['attempt'].unique()))
        solved = attempts_df[attempts_df['found']]
        if not solved.empty:
            sns.countplot(data=solved, x='attempt', hue='mode', ax=axes[1])
        axes[1].set_title("Attempt That Found the Path")
        plt.tight_layout()
        save_path = os.path.join(out_dir, "attempt_metrics.png")
        fig.savefig(save_path, dpi=150)
        plt.close(fig)
        return save_path

    @staticmethod
    def display_comparison_table(results_df: pd.DataFrame, out_dir="analysis_plots"):
        """Print and save per-mode extraction totals plus a breakdown of outcomes."""
        summary = results_df.groupby('mode').agg(
            maps=('map', 'nunique'),
            found=('found', 'sum'),
            mean_attempts=('attempts', 'mean'),
            mean_steps=('steps', 'mean'),
            mean_threshold=('threshold', 'mean'),
        )
        outcomes = pd.crosstab(results_df['mode'], results_df['error'].fillna('found'))
        print("\n--- Extraction Summary ---")
        print(summary)
        print(outcomes)
        os.makedirs(out_dir, exist_ok=True)
        filepath = os.path.join(out_dir, "extraction_summary_table.txt")
        with open(filepath, 'w') as f:
            f.write("--- Extraction Summary ---\n")
            f.write(summary.to_string())
            f.write("\n\n--- Outcomes ---\n")
            f.write(outcomes.to_string())
        print(f"\nSummary table saved to {filepath}")
        return summary, outcomes


def attempts_frame(map_name: str, mode: str, result) -> pd.DataFrame:
    """One row per search attempt of an ExtractionResult."""
    rows = [{
        'map': map_name,
        'mode': mode,
        'attempt': m['attempt'],
        'visited_nodes': m['visited_nodes'],
        'path_length': m['path_length'],
        'found': m['path_length'] > 0,
    } for m in result.attempt_metrics]
    return pd.DataFrame(rows, columns=['map', 'mode', 'attempt', 'visited_nodes', 'path_length', 'found'])
