#!/usr/bin/env python3
"""Trace a gallery of primitives with the batch tracer.

This script builds a small scene with one node per primitive family,
intersects one ray per pixel with the Taichi batch tracer and writes a
normal map (PNG via Pillow) and a depth buffer (.npy). Shading is left to a
renderer; this only exercises the intersection kernel.

Usage:
    python examples/render_gallery.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 480)
    --height HEIGHT     Image height in pixels (default: 320)
    --output OUTPUT     Output path stem (default: gallery)
    --scene-json PATH   Also write the scene description as JSON
    --cpu               Force the Taichi CPU backend
    --quiet             Suppress progress output

Example:
    python examples/render_gallery.py --width 240 --height 160 --output preview
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti
from PIL import Image as PILImage


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Trace a gallery of primitives with the batch tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=480,
        help="Image width in pixels (default: 480)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=320,
        help="Image height in pixels (default: 320)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="gallery",
        help="Output path stem (default: gallery)",
    )
    parser.add_argument(
        "--scene-json",
        type=str,
        default=None,
        help="Also write the scene description as JSON",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the Taichi CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def build_gallery_scene(aspect_ratio: float):
    """Create a row of primitives over a triangle-mesh floor.

    Args:
        aspect_ratio: Camera aspect ratio (width / height).

    Returns:
        A frozen Scene with one camera, two lights and five root nodes.
    """
    from raykernel import (
        AmbientLight,
        Camera,
        Cone,
        CubeUnit,
        Mesh,
        Node,
        PointLight,
        Scene,
        Sphere,
        Steiner,
        Torus,
        blue,
        green,
        magenta,
        red,
        turquoise,
    )

    scene = Scene()
    scene.add_camera(
        "main",
        Camera(
            eye=(0.0, 2.0, 9.0),
            look_at=(0.0, 0.0, 0.0),
            fov=45.0,
            aspect_ratio=aspect_ratio,
        ),
    )
    scene.add_light("key", PointLight((4.0, 6.0, 6.0), falloff=(1.0, 0.05, 0.0)))
    scene.add_light("fill", AmbientLight((0.1, 0.1, 0.1)))

    scene.add_material("floor", turquoise())
    floor = Mesh(
        [
            [[-6.0, 0.0, -6.0], [-6.0, 0.0, 6.0], [6.0, 0.0, 6.0]],
            [[-6.0, 0.0, -6.0], [6.0, 0.0, 6.0], [6.0, 0.0, -6.0]],
        ]
    )
    scene.add_node("floor", Node(floor, scene.get_material("floor")).translate(0.0, -1.0, 0.0))

    scene.add_node("ball", Node(Sphere(), red()).translate(-3.0, 0.0, 0.0))
    box = Node(CubeUnit(), blue()).scale(0.7, 0.7, 0.7).rotate(0.0, 30.0, 0.0)
    box.add_child(Node(Cone(height=1.0, radius=0.5), green()).translate(0.0, 2.0, 0.0))
    scene.add_node("box", box.translate(-0.8, -0.3, 0.0))
    scene.add_node(
        "ring", Node(Torus(0.25, 0.8), magenta()).rotate(70.0, 0.0, 0.0).translate(1.4, 0.0, 0.0)
    )
    scene.add_node("roman", Node(Steiner(), red()).scale(1.5, 1.5, 1.5).translate(3.4, 0.0, 0.0))
    return scene.freeze()


def save_normal_map(image: npt.NDArray[np.float64], filepath: str | Path) -> None:
    """Save an (H, W, 3) image with values in [0, 1] as an 8-bit PNG.

    Args:
        image: Linear image array, e.g. normals remapped to [0, 1].
        filepath: Output file path (should end in .png).
    """
    image_uint8 = (np.clip(image, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)

    # Save using Pillow
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)


def render_gallery(
    width: int = 480,
    height: int = 320,
    output_stem: str = "gallery",
    scene_json: str | None = None,
    quiet: bool = False,
) -> tuple[Path, Path]:
    """Trace the gallery scene and save the normal map and depth buffer.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        output_stem: Output path without extension.
        scene_json: Optional path for the scene description.
        quiet: If True, suppress progress output.

    Returns:
        Paths of the written normal map and depth buffer.
    """
    # Lazy import: the batch module allocates Taichi fields on import
    from raykernel.scene.batch import BatchTracer

    if not quiet:
        print(f"Building gallery scene ({width}x{height})...")
    scene = build_gallery_scene(width / height)
    if scene_json is not None:
        Path(scene_json).write_text(json.dumps(scene.to_dict(), indent=2))

    origins, directions = scene.default_camera().generate_rays(width, height)

    start_time = time.time()
    tracer = BatchTracer(scene)
    hits = tracer.intersect(origins.reshape(-1, 3), directions.reshape(-1, 3))
    elapsed = time.time() - start_time

    normals = hits.normal.reshape(height, width, 3)
    image = np.where(hits.hit.reshape(height, width, 1), 0.5 * (normals + 1.0), 0.0)
    depth = hits.t.reshape(height, width)

    normal_path = Path(f"{output_stem}_normals.png")
    depth_path = Path(f"{output_stem}_depth.npy")
    save_normal_map(image, normal_path)
    np.save(depth_path, depth)

    if not quiet:
        coverage = 100.0 * hits.hit.mean()
        print(f"  {len(tracer.flat.instances)} instances, {coverage:.1f}% of pixels hit")
        print(f"Saved to: {normal_path.absolute()} and {depth_path.absolute()}")
        print(f"Total time: {elapsed:.2f}s")

    return normal_path, depth_path


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # ti.gpu falls back to the CPU when no GPU backend is available
    ti.init(arch=ti.cpu if args.cpu else ti.gpu)

    try:
        render_gallery(
            width=args.width,
            height=args.height,
            output_stem=args.output,
            scene_json=args.scene_json,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
