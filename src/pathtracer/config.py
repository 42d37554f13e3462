"""Render configuration.

This module does not import Taichi, so a configuration can be built and
validated before ``ti.init`` runs.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image

# Largest render target the integrator preallocates
MAX_RENDER_WIDTH = 2048
MAX_RENDER_HEIGHT = 2048

# Names accepted by pathtracer.scene.demo_scenes.load_scene
SCENE_NAMES = ("default", "spheres", "motion", "textures", "perlin", "image")

# Taichi backends selectable from the command line
ARCH_NAMES = ("cpu", "gpu")


def is_supported_output(path: Path) -> bool:
    """Check whether an output path has a suffix we know how to write."""
    suffix = path.suffix.lower()
    if suffix == ".ppm":
        return True
    image_format = Image.registered_extensions().get(suffix)
    return image_format is not None and image_format in Image.SAVE


@dataclass
class RenderConfig:
    """Configuration for a single render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples averaged per pixel.
        scene: Name of the demo scene to render.
        output: Output image path; ``.ppm`` or any Pillow-writable suffix.
        seed: Seed for scene construction and the per-pixel random streams.
        arch: Taichi backend, "cpu" or "gpu".
        image_path: Image wrapped around the globe in the "image" scene.
        batch_size: Samples per pixel rendered between progress updates.
    """

    width: int = 200
    height: int = 100
    samples_per_pixel: int = 100
    scene: str = "default"
    output: Path = Path("output/output.ppm")
    seed: int = 0
    arch: str = "cpu"
    image_path: Optional[Path] = None
    batch_size: int = 10

    def __post_init__(self):
        """Validate configuration."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")

        if self.width > MAX_RENDER_WIDTH or self.height > MAX_RENDER_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_RENDER_WIDTH}x{MAX_RENDER_HEIGHT})"
            )

        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")

        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

        if self.scene not in SCENE_NAMES:
            raise ValueError(
                f"Unknown scene '{self.scene}'. Available scenes: {', '.join(SCENE_NAMES)}"
            )

        if self.arch not in ARCH_NAMES:
            raise ValueError(f"Unknown arch '{self.arch}'. Choose one of: {', '.join(ARCH_NAMES)}")

        if self.image_path is not None:
            self.image_path = Path(self.image_path)
        if self.scene == "image" and self.image_path is None:
            raise ValueError("The 'image' scene requires an image path")

        self.output = Path(self.output)
        if not is_supported_output(self.output):
            raise ValueError(f"Unsupported output format '{self.output.suffix}' for {self.output}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height
