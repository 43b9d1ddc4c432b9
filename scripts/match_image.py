from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import cv2
import numpy as np

from nccmatch import MatchConfig, MatchMethod, MatchResult, match_template
from nccmatch.io import load_grayscale


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Locate a template inside an image with sliding-window correlation.")
    parser.add_argument("image", type=Path, help="Image to search.")
    parser.add_argument("template", type=Path, help="Template to look for.")
    parser.add_argument(
        "--method",
        type=str,
        choices=[method.value for method in MatchMethod],
        default=MatchMethod.CCORR.value,
        help="Scoring formula.",
    )
    parser.add_argument(
        "--no-normalize",
        action="store_true",
        help="Use the raw score instead of upgrading the method to its normalized variant.",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=("numpy", "reference", "opencv"),
        default="numpy",
        help="Kernel used for the per-window sum of products.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for the row scan. Defaults to the CPU count.",
    )
    parser.add_argument(
        "--rows-per-task",
        type=int,
        default=1,
        help="Output rows handed to a worker at a time.",
    )
    parser.add_argument(
        "--expect",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Expected top-left location; reports the pixel error against it.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write an annotated copy of the image to this path.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def render_visualization(image: np.ndarray, result: MatchResult) -> np.ndarray:
    """
    Draw the matched window and its score on a color copy of the image.
    """
    annotated = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    x, y = result.location
    width, height = result.template_size
    cv2.rectangle(annotated, (x, y), (x + width - 1, y + height - 1), (0, 0, 255), 2)
    label = f"{result.method.value} | score={result.best_score:.4f} | loc=({x},{y})"
    cv2.putText(annotated, label, (8, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.55, (255, 255, 255), 2, lineType=cv2.LINE_AA)
    return annotated


def main() -> int:
    args = parse_arguments()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    image = load_grayscale(args.image)
    template = load_grayscale(args.template)
    config = MatchConfig(workers=args.workers, rows_per_task=args.rows_per_task, backend=args.backend)

    method = MatchMethod(args.method)
    normalize = None if args.no_normalize or method.normalized else True
    result = match_template(image, template, method, normalize, config=config, keep_grid=False)

    timings = result.stats.timings_ms
    print(
        f"{args.image.name:35s} | "
        f"method={result.method.value} | "
        f"score={result.best_score: .6f} ({result.kind.value}) | "
        f"loc=({result.location[0]},{result.location[1]}) | "
        f"center=({result.center[0]:.1f},{result.center[1]:.1f})"
    )
    print(
        f"Timings (ms)     : precompute={timings['precompute']:.2f}, scan={timings['scan']:.2f}, "
        f"extrema={timings['extrema']:.2f}"
    )
    print(
        f"Scan             : workers={result.stats.workers}, tasks={result.stats.tasks}, "
        f"degenerate windows={result.stats.degenerate_windows}"
    )

    status = 0
    if args.expect is not None:
        expected_x, expected_y = args.expect
        pixel_error = math.hypot(result.location[0] - expected_x, result.location[1] - expected_y)
        print(f"Pixel error (px) : {pixel_error:.3f} (expected=({expected_x},{expected_y}))")
        status = 0 if pixel_error == 0 else 1

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(str(args.output), render_visualization(image, result))
        print(f"Visualization    : {args.output}")

    return status


if __name__ == "__main__":
    sys.exit(main())
