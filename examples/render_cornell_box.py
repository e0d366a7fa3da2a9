#!/usr/bin/env python3
"""Render the Cornell box scene.

This script renders the classic Cornell box (or its smoke variant) end to
end: it builds the scene, renders it with light importance sampling and
saves the result as PNG or PPM, depending on the output extension.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH         Image width in pixels (default: 600)
    --samples SAMPLES     Samples per pixel, a perfect square (default: 100)
    --max-depth DEPTH     Maximum number of bounces (default: 50)
    --seed SEED           Random seed (default: 0)
    --output OUTPUT       Output file path, .png or .ppm (default: cornell_box.png)
    --scene {cornell,smoke}
                          Scene preset (default: cornell)
    --cpu                 Force the CPU backend
    --quiet               Suppress progress output

Example:
    python -m examples.render_cornell_box --width 200 --samples 64 --output box.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=600,
        help="Image width in pixels (default: 600)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Samples per pixel, must be a perfect square (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum number of bounces (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path, .png or .ppm (default: cornell_box.png)",
    )
    parser.add_argument(
        "--scene",
        choices=("cornell", "smoke"),
        default="cornell",
        help="Scene preset (default: cornell)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_cornell_box(
    width: int = 600,
    num_samples: int = 100,
    max_depth: int = 50,
    output_path: str = "cornell_box.png",
    scene_name: str = "cornell",
    quiet: bool = False,
) -> Path:
    """Render a Cornell box preset and save it to file.

    Args:
        width: Image width in pixels (the image is square).
        num_samples: Samples per pixel.
        max_depth: Maximum number of bounces.
        output_path: Output file path (.png or .ppm).
        scene_name: "cornell" or "smoke".
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any field is created
    from src.lightpath.core.integrator import render
    from src.lightpath.preview.export import save_image
    from src.lightpath.scene.cornell_box import (
        CornellBoxParams,
        create_cornell_box_scene,
        create_cornell_smoke_scene,
    )

    params = CornellBoxParams(
        image_width=width,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
    )

    if not quiet:
        print(f"Creating {scene_name} scene ({width}x{width})...")

    factory = create_cornell_smoke_scene if scene_name == "smoke" else create_cornell_box_scene
    _, camera = factory(params)

    if not quiet:
        print(f"Rendering {num_samples} samples per pixel, max depth {max_depth}...")

    start_time = time.time()
    image = render(camera)

    output_file = Path(output_path)
    save_image(image, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.cpu:
        ti.init(arch=ti.cpu, random_seed=args.seed)
    else:
        # ti.gpu falls back to the CPU backend when no GPU is available
        ti.init(arch=ti.gpu, random_seed=args.seed)

    try:
        render_cornell_box(
            width=args.width,
            num_samples=args.samples,
            max_depth=args.max_depth,
            output_path=args.output,
            scene_name=args.scene,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
