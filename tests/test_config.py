"""Tests for RenderConfig validation."""

from pathlib import Path

import pytest

from pathtracer.config import RenderConfig, is_supported_output


class TestRenderConfig:
    """Tests for the render configuration dataclass."""

    def test_defaults(self):
        """Test the default configuration."""
        config = RenderConfig()

        assert (config.width, config.height) == (200, 100)
        assert config.samples_per_pixel == 100
        assert config.scene == "default"
        assert config.output == Path("output/output.ppm")
        assert config.seed == 0
        assert config.arch == "cpu"
        assert config.image_path is None
        assert config.batch_size == 10
        assert config.aspect_ratio == 2.0

    def test_paths_are_normalized(self):
        """Test that string paths become Path objects."""
        config = RenderConfig(scene="image", image_path="earth.jpg", output="render.png")

        assert config.image_path == Path("earth.jpg")
        assert config.output == Path("render.png")

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"width": 0}, "must be positive"),
            ({"height": -5}, "must be positive"),
            ({"width": 4096}, "exceed maximum supported"),
            ({"samples_per_pixel": 0}, "samples_per_pixel must be positive"),
            ({"batch_size": 0}, "batch_size must be positive"),
            ({"scene": "cornell"}, "Unknown scene"),
            ({"arch": "tpu"}, "Unknown arch"),
            ({"scene": "image"}, "requires an image path"),
            ({"output": Path("render.xyz")}, "Unsupported output format"),
        ],
    )
    def test_validation(self, kwargs, message):
        """Test that invalid settings raise ValueError."""
        with pytest.raises(ValueError, match=message):
            RenderConfig(**kwargs)


class TestSupportedOutput:
    """Tests for output suffix detection."""

    @pytest.mark.parametrize("name", ["out.ppm", "out.PPM", "out.png", "out.jpg", "out.bmp"])
    def test_supported(self, name):
        """Test suffixes we can write."""
        assert is_supported_output(Path(name))

    @pytest.mark.parametrize("name", ["out", "out.txt", "out.xyz"])
    def test_unsupported(self, name):
        """Test suffixes we cannot write."""
        assert not is_supported_output(Path(name))
