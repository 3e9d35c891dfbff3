# scripts/extract_paths.py

import os
import pandas as pd
from pather.core import PixelGrid
from pather.extraction import DEFAULT_THRESHOLD, OTSU, ExtractionConfig, PathExtractor
from pather.visualizer import Visualizer, attempts_frame, save_path_image

# USER CONFIGURATIONS:
BITMAP_FOLDER = "bitmaps"                # Folder of scanned grayscale bitmaps
OUTPUT_FOLDER = "analysis_plots"         # Where overlays, plots and tables are written
RESULTS_CSV = "extraction_results.csv"
ATTEMPTS_CSV = "extraction_attempts.csv"
BITMAP_EXTENSIONS = ('.bmp', '.png', '.pgm', '.jpg', '.jpeg')
MAX_RETRIES = 2                          # Dilation retries after the first attempt
USE_EDGE_FILTER = False                  # Sobel pass before binarization
DARK_IS_WALKABLE = True                  # Dark ink marks the corridor

MODES = [
    ("Fixed", DEFAULT_THRESHOLD),
    ("Otsu", OTSU),
]


def main():
    results = []
    attempt_frames = []
    if not os.path.exists(BITMAP_FOLDER):
        os.makedirs(BITMAP_FOLDER, exist_ok=True)
        print(f"Created '{BITMAP_FOLDER}' directory. Add bitmap files and run again.")
        return

    bitmap_files = sorted(f for f in os.listdir(BITMAP_FOLDER) if f.lower().endswith(BITMAP_EXTENSIONS))
    if not bitmap_files:
        print(f"No bitmap files found in '{BITMAP_FOLDER}'.")
        return

    os.makedirs(OUTPUT_FOLDER, exist_ok=True)
    for filename in bitmap_files:
        filepath = os.path.join(BITMAP_FOLDER, filename)
        print(f"\nProcessing bitmap: {filename}")
        try:
            grid = PixelGrid.from_file(filepath)
        except ValueError as e:
            print(f"Error loading bitmap {filename}: {e}")
            continue

        for mode_name, threshold in MODES:
            print(f"Extracting with {mode_name} threshold...")
            config = ExtractionConfig(
                max_retries=MAX_RETRIES,
                threshold=threshold,
                use_edge_filter=USE_EDGE_FILTER,
                dark_is_walkable=DARK_IS_WALKABLE,
            )
            result = PathExtractor(config).extract(grid)
            if result.ok:
                print(f" ✔️ Path of {result.steps} steps found on attempt {result.attempts}")
                base = os.path.splitext(filename)[0]
                overlay = os.path.join(OUTPUT_FOLDER, f"{base}_{mode_name.lower()}_path.png")
                save_path_image(overlay, grid.data, result.path)
                Visualizer.plot_attempts(grid.data, result.mask, result.path,
                                         map_name=f"{base}_{mode_name.lower()}", out_dir=OUTPUT_FOLDER)
            else:
                print(f" ❌ {result.error.value} after {result.attempts} attempt(s)")
            attempt_frames.append(attempts_frame(filename, mode_name, result))
            results.append({
                "map": filename,
                "mode": mode_name,
                "threshold": result.threshold,
                "found": result.ok,
                "attempts": result.attempts,
                "steps": result.steps if result.ok else None,
                "visited_nodes": sum(m['visited_nodes'] for m in result.attempt_metrics),
                "error": result.error.value if result.error else None,
            })

    if not results:
        print("No results to analyze.")
        return

    results_df = pd.DataFrame(results)
    results_df.to_csv(RESULTS_CSV, index=False)
    print(f"\nAll results saved to '{RESULTS_CSV}'.")
    attempt_frames = [f for f in attempt_frames if not f.empty]
    if attempt_frames:
        attempts_df = pd.concat(attempt_frames, ignore_index=True)
        attempts_df.to_csv(ATTEMPTS_CSV, index=False)
        print(f"Per-attempt metrics saved to '{ATTEMPTS_CSV}'.")
        Visualizer.plot_attempt_metrics(attempts_df, out_dir=OUTPUT_FOLDER)
    Visualizer.display_comparison_table(results_df, out_dir=OUTPUT_FOLDER)
    print(f"Overlays, plots and summary table are saved in the '{OUTPUT_FOLDER}/' folder.")


if __name__ == "__main__":
    main()
