"""Tests for the gallery example script.

Tests cover:
- PNG output of normal maps through Pillow
- The gallery scene and its end-to-end batch trace
"""

from pathlib import Path

import numpy as np
from PIL import Image as PILImage


class TestSaveNormalMap:
    """Tests for save_normal_map()."""

    def test_writes_png(self, tmp_path: Path):
        from examples.render_gallery import save_normal_map

        image = np.zeros((32, 64, 3))
        image[0, 0] = (1.0, 0.5, 0.0)
        filepath = tmp_path / "normals.png"
        save_normal_map(image, filepath)

        img = PILImage.open(filepath)
        assert img.format == "PNG"
        assert img.mode == "RGB"
        assert img.size == (64, 32)  # PIL size is (width, height)
        assert img.getpixel((0, 0)) == (255, 128, 0)
        assert img.getpixel((1, 0)) == (0, 0, 0)

    def test_values_are_clipped(self, tmp_path: Path):
        from examples.render_gallery import save_normal_map

        image = np.full((2, 2, 3), 2.0)
        image[1, 1] = -1.0
        filepath = tmp_path / "clipped.png"
        save_normal_map(image, filepath)

        pixels = np.asarray(PILImage.open(filepath))
        assert pixels[0, 0].tolist() == [255, 255, 255]
        assert pixels[1, 1].tolist() == [0, 0, 0]


class TestRenderGallery:
    """Tests for the gallery scene and render_gallery()."""

    def test_scene_is_frozen(self):
        from examples.render_gallery import build_gallery_scene

        scene = build_gallery_scene(1.5)
        assert scene.is_frozen
        assert list(scene.nodes()) == ["floor", "ball", "box", "ring", "roman"]
        assert scene.default_camera().aspect_ratio == 1.5

    def test_render_writes_outputs(self, tmp_path: Path):
        from examples.render_gallery import render_gallery

        stem = tmp_path / "gallery"
        normal_path, depth_path = render_gallery(
            width=24, height=16, output_stem=str(stem), quiet=True
        )

        assert PILImage.open(normal_path).size == (24, 16)
        depth = np.load(depth_path)
        assert depth.shape == (16, 24)
        # The floor fills the bottom of the frame
        assert np.all(np.isfinite(depth[-1]))
