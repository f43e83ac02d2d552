#!/usr/bin/env python3
"""Render a field of random spheres.

This script builds the classic "many spheres" scene: a checkered ground,
three large feature spheres (glass, marble and mirror) and a grid of small
spheres with random materials, some of them moving for motion blur. It
renders progressively and writes the result as an 8-bit image.

Press Ctrl+C during the render to stop early; the samples finished so far
are still saved.

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Number of samples per pixel (default: 50)
    --max-depth DEPTH   Maximum hit-checks per path (default: 50)
    --seed SEED         Render and scene seed (default: 0)
    --output OUTPUT     Output file path (default: spheres.png)
    --batch-size SIZE   Samples per progress update (default: 5)
    --linear            Scan every object instead of using the BVH
    --gpu               Use the GPU backend
    --quiet             Suppress progress output

Example:
    python examples/render_spheres.py --width 200 --height 112 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import random
import signal
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a field of random spheres.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument(
        "--height", type=int, default=225, help="Image height in pixels (default: 225)"
    )
    parser.add_argument(
        "--samples", type=int, default=50, help="Number of samples per pixel (default: 50)"
    )
    parser.add_argument(
        "--max-depth", type=int, default=50, help="Maximum hit-checks per path (default: 50)"
    )
    parser.add_argument("--seed", type=int, default=0, help="Render and scene seed (default: 0)")
    parser.add_argument(
        "--output", type=str, default="spheres.png", help="Output file path (default: spheres.png)"
    )
    parser.add_argument(
        "--batch-size", type=int, default=5, help="Samples per progress update (default: 5)"
    )
    parser.add_argument(
        "--linear", action="store_true", help="Scan every object instead of using the BVH"
    )
    parser.add_argument("--gpu", action="store_true", help="Use the GPU backend")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def build_scene(scene, seed: int) -> None:
    """Populate a SceneManager with the random sphere field.

    Args:
        scene: The SceneManager to fill.
        seed: Seed for sphere placement and material choice.
    """
    rng = random.Random(seed)

    white = scene.add_lambertian_material((0.9, 0.9, 0.9))
    green = scene.add_lambertian_material((0.2, 0.3, 0.1))
    ground = scene.add_checkered_material(white, green)
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    for a in range(-5, 5):
        for b in range(-5, 5):
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            dx, dz = center[0] - 4.0, center[2]
            if (dx * dx + dz * dz) ** 0.5 <= 0.9:
                continue

            choice = rng.random()
            if choice < 0.7:
                albedo = tuple(rng.random() * rng.random() for _ in range(3))
                material = scene.add_lambertian_material(albedo)
                velocity = (0.0, 0.5 * rng.random(), 0.0)
                scene.add_sphere(center, 0.2, material, velocity=velocity)
            elif choice < 0.9:
                albedo = tuple(0.5 + 0.5 * rng.random() for _ in range(3))
                material = scene.add_metal_material(albedo, fuzz=0.5 * rng.random())
                scene.add_sphere(center, 0.2, material)
            else:
                scene.add_sphere(center, 0.2, scene.add_dielectric_material(1.5))

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, scene.add_dielectric_material(1.5))
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, scene.add_perlin_material(seed=seed, scale=4.0))
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, scene.add_metal_material((0.7, 0.6, 0.5), fuzz=0.0))


def render_spheres(args: argparse.Namespace) -> Path:
    """Build, render and save the scene.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import CameraParams
    from pathtracer.core.cancellation import ContinueFlag
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    build_scene(scene, args.seed)
    camera = CameraParams(
        vfov=20.0,
        aspect_ratio=args.width / args.height,
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        focus_distance=10.0,
        aperture=0.1,
        exposure_time=1.0,
    )
    scene.build(camera, use_bvh=not args.linear)

    flag = ContinueFlag()
    signal.signal(signal.SIGINT, lambda signum, frame: flag.stop())

    renderer = ProgressiveRenderer(args.width, args.height, max_depth=args.max_depth, seed=args.seed)
    start_time = time.perf_counter()

    def progress_callback(current: int, target: int) -> None:
        if not args.quiet:
            elapsed = time.perf_counter() - start_time
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=args.samples,
        batch_size=args.batch_size,
        callback=progress_callback,
        should_continue=flag,
    )
    if not args.quiet:
        print()  # Newline after progress

    output_file = renderer.save_image(args.output)
    if not args.quiet:
        print(f"Saved {renderer.sample_count} spp to: {output_file.absolute()}")
        print(f"Total time: {time.perf_counter() - start_time:.2f}s")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from pathtracer.core.config import init_taichi

    init_taichi(ti.gpu if args.gpu else ti.cpu, seed=args.seed)

    try:
        render_spheres(args)
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
