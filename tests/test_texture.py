"""Unit tests for textures.

Tests cover:
- Solid color textures
- 3D checker selection and nesting
- Perlin marble textures
- Image loading, uploading and nearest-texel lookup
- Registry validation
"""

import math

import numpy as np
import pytest
import taichi as ti
from PIL import Image


def _sample(texture_id: int, u: float, v: float, p: tuple[float, float, float]):
    from pathtracer.core.vector import vec3
    from pathtracer.textures.texture import sample_texture

    px, py, pz = p
    result = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel():
        result[None] = sample_texture(texture_id, u, v, vec3(px, py, pz))

    test_kernel()
    c = result[None]
    return (float(c[0]), float(c[1]), float(c[2]))


def _close(color, expected, tol: float = 1e-5) -> bool:
    return all(abs(a - b) < tol for a, b in zip(color, expected))


def _checker_image() -> np.ndarray:
    """A 2x2 image: red, green on the top row and blue, white below."""
    return np.array(
        [
            [[255, 0, 0], [0, 255, 0]],
            [[0, 0, 255], [255, 255, 255]],
        ],
        dtype=np.uint8,
    )


class TestSolidTexture:
    """Tests for constant color textures."""

    def test_solid_color_everywhere(self):
        """Test that a solid texture ignores the point and uv."""
        from pathtracer.textures.texture import TextureType, add_solid_texture, get_texture_type

        tex = add_solid_texture((0.2, 0.4, 0.6))

        assert get_texture_type(tex) == TextureType.SOLID
        for p in [(0.0, 0.0, 0.0), (10.0, -3.0, 5.5)]:
            c = _sample(tex, 0.3, 0.9, p)
            assert abs(c[0] - 0.2) < 1e-6
            assert abs(c[1] - 0.4) < 1e-6
            assert abs(c[2] - 0.6) < 1e-6


class TestCheckeredTexture:
    """Tests for the 3D checker."""

    def test_checker_selects_by_sine_sign(self):
        """Test that the odd child is used where the sine product is negative."""
        from pathtracer.textures.texture import add_checkered_texture, add_solid_texture

        odd = add_solid_texture((1.0, 0.0, 0.0))
        even = add_solid_texture((0.0, 0.0, 1.0))
        checker = add_checkered_texture(odd, even)

        # sin(1) sin(1) sin(-1) < 0
        assert _close(_sample(checker, 0.0, 0.0, (0.1, 0.1, -0.1)), (1.0, 0.0, 0.0))
        # sin(1) sin(1) sin(1) > 0
        assert _close(_sample(checker, 0.0, 0.0, (0.1, 0.1, 0.1)), (0.0, 0.0, 1.0))

    def test_nested_checkers(self):
        """Test that a checker of checkers resolves to a leaf color."""
        from pathtracer.textures.texture import add_checkered_texture, add_solid_texture

        a = add_solid_texture((1.0, 0.0, 0.0))
        b = add_solid_texture((0.0, 1.0, 0.0))
        c = add_solid_texture((0.0, 0.0, 1.0))
        inner = add_checkered_texture(a, b)
        outer = add_checkered_texture(inner, c)

        # Odd cell at both levels: outer -> inner -> a
        assert _close(_sample(outer, 0.0, 0.0, (0.1, 0.1, -0.1)), (1.0, 0.0, 0.0))
        # Even cell at the outer level: c
        assert _close(_sample(outer, 0.0, 0.0, (0.1, 0.1, 0.1)), (0.0, 0.0, 1.0))

    def test_checker_requires_existing_children(self):
        """Test that a checker cannot refer to unregistered textures."""
        from pathtracer.textures.texture import add_checkered_texture, add_solid_texture

        solid = add_solid_texture((1.0, 1.0, 1.0))

        with pytest.raises(ValueError, match="Invalid even texture id"):
            add_checkered_texture(solid, 5)
        with pytest.raises(ValueError, match="Invalid odd texture id"):
            add_checkered_texture(-1, solid)


class TestNoiseTexture:
    """Tests for the Perlin marble texture."""

    def test_marble_at_lattice_point(self):
        """Test the marble value where turbulence vanishes."""
        from pathtracer.textures.perlin import Perlin, add_perlin
        from pathtracer.textures.texture import add_noise_texture

        perlin_id = add_perlin(Perlin.from_seed(0))
        tex = add_noise_texture(perlin_id, 1.0)

        c = _sample(tex, 0.0, 0.0, (1.0, 0.0, 0.0))
        expected = 0.5 * (1.0 + math.sin(1.0))
        assert abs(c[0] - expected) < 1e-5
        assert c[0] == c[1] == c[2]

    def test_marble_in_unit_range(self):
        """Test that marble values stay within [0, 1]."""
        from pathtracer.textures.perlin import Perlin, add_perlin
        from pathtracer.textures.texture import add_noise_texture

        perlin_id = add_perlin(Perlin.from_seed(0))
        tex = add_noise_texture(perlin_id, 4.0)

        for p in [(0.3, 0.7, -0.2), (1.9, -0.4, 2.2), (-3.3, 0.1, 0.6)]:
            c = _sample(tex, 0.0, 0.0, p)
            assert -1e-6 <= c[0] <= 1.0 + 1e-6

    def test_noise_requires_registered_generator(self):
        """Test that a noise texture needs an uploaded Perlin generator."""
        from pathtracer.textures.texture import add_noise_texture

        with pytest.raises(ValueError, match="Invalid Perlin id"):
            add_noise_texture(0, 4.0)


class TestImageTexture:
    """Tests for image loading and sampling."""

    def test_load_image_converts_to_rgb(self, tmp_path):
        """Test that images are decoded to (H, W, 3) uint8."""
        from pathtracer.textures.image import load_image

        path = tmp_path / "gray.png"
        Image.new("L", (3, 2), color=128).save(path)

        pixels = load_image(path)

        assert pixels.shape == (2, 3, 3)
        assert pixels.dtype == np.uint8
        assert np.all(pixels == 128)

    def test_load_missing_image(self, tmp_path):
        """Test that a missing image file raises FileNotFoundError."""
        from pathtracer.textures.image import load_image

        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")

    def test_nearest_texel_lookup(self):
        """Test that (u, v) maps to texels with v = 1 at the top row."""
        from pathtracer.textures.image import add_image
        from pathtracer.textures.texture import add_image_texture

        tex = add_image_texture(add_image(_checker_image()))

        assert _close(_sample(tex, 0.1, 0.9, (0.0, 0.0, 0.0)), (1.0, 0.0, 0.0))
        assert _close(_sample(tex, 0.9, 0.9, (0.0, 0.0, 0.0)), (0.0, 1.0, 0.0))
        assert _close(_sample(tex, 0.1, 0.1, (0.0, 0.0, 0.0)), (0.0, 0.0, 1.0))
        assert _close(_sample(tex, 0.9, 0.1, (0.0, 0.0, 0.0)), (1.0, 1.0, 1.0))

    def test_lookup_clamps_at_edges(self):
        """Test that u = 1 and v = 0 stay inside the image."""
        from pathtracer.textures.image import add_image
        from pathtracer.textures.texture import add_image_texture

        tex = add_image_texture(add_image(_checker_image()))

        assert _close(_sample(tex, 1.0, 0.0, (0.0, 0.0, 0.0)), (1.0, 1.0, 1.0))
        assert _close(_sample(tex, 0.0, 1.0, (0.0, 0.0, 0.0)), (1.0, 0.0, 0.0))

    def test_second_image_uses_its_own_texels(self):
        """Test that images packed into the atlas do not overlap."""
        from pathtracer.textures.image import add_image, get_image_count
        from pathtracer.textures.texture import add_image_texture

        add_image_texture(add_image(_checker_image()))
        green = np.zeros((4, 4, 3), dtype=np.uint8)
        green[..., 1] = 255
        second = add_image_texture(add_image(green))

        assert get_image_count() == 2
        assert _close(_sample(second, 0.1, 0.9, (0.0, 0.0, 0.0)), (0.0, 1.0, 0.0))

    def test_add_image_rejects_bad_shape(self):
        """Test that non-RGB arrays are rejected."""
        from pathtracer.textures.image import add_image

        with pytest.raises(ValueError, match="Expected a non-empty"):
            add_image(np.zeros((4, 4), dtype=np.uint8))

    def test_image_texture_requires_registered_image(self):
        """Test that an image texture needs an uploaded image."""
        from pathtracer.textures.texture import add_image_texture

        with pytest.raises(ValueError, match="Invalid image id"):
            add_image_texture(0)


class TestTextureRegistry:
    """Tests for registry bookkeeping."""

    def test_ids_are_sequential(self):
        """Test that textures are numbered in registration order."""
        from pathtracer.textures.texture import add_solid_texture, get_texture_count

        assert add_solid_texture((0.0, 0.0, 0.0)) == 0
        assert add_solid_texture((1.0, 1.0, 1.0)) == 1
        assert get_texture_count() == 2

    def test_get_texture_type_rejects_invalid_id(self):
        """Test that unknown ids are rejected."""
        from pathtracer.textures.texture import get_texture_type

        with pytest.raises(ValueError, match="Invalid texture id"):
            get_texture_type(0)
