"""Image export utilities for rendered images.

Supported formats:
    - PPM (ASCII P3, written directly)
    - PNG and the other formats Pillow can write

Rendered images are row-major with row 0 at the top and 8-bit RGB channels,
as produced by ``pathtracer.core.integrator.render`` or
``ProgressiveRenderer.get_image_uint8``.

Example:
    >>> from pathtracer.core.integrator import render
    >>> from pathtracer.output.export import write_ppm
    >>> pixels = render(camera, scene, 200, 100, samples_per_pixel=100)
    >>> write_ppm("output/output.ppm", pixels, 200, 100)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

PPM_SUFFIX = ".ppm"


def _ensure_parent(filepath: str | Path) -> Path:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_ppm(
    filepath: str | Path,
    pixels: Iterable[tuple[int, int, int]],
    width: int,
    height: int,
) -> None:
    """Write pixels as an ASCII PPM (P3) file.

    The file holds the header ``P3``, ``width height`` and ``255`` on
    separate lines, then one ``r g b`` line per pixel.

    Args:
        filepath: Output file path. Missing parent directories are created.
        pixels: Row-major (r, g, b) byte triples, top row first.
        width: Image width in pixels.
        height: Image height in pixels.

    Raises:
        ValueError: If the number of pixels is not width * height.
    """
    lines = [f"{r} {g} {b}\n" for r, g, b in pixels]
    if len(lines) != width * height:
        raise ValueError(f"Expected {width * height} pixels for {width}x{height}, got {len(lines)}")

    path = _ensure_parent(filepath)
    with path.open("w", encoding="ascii") as f:
        f.write(f"P3\n{width} {height}\n255\n")
        f.writelines(lines)
    logger.info("Wrote %s", path)


def image_to_pixels(image: npt.NDArray[np.uint8]) -> list[tuple[int, int, int]]:
    """Flatten an (H, W, 3) image into row-major (r, g, b) triples."""
    return [(r, g, b) for r, g, b in np.asarray(image).reshape(-1, 3).tolist()]


def save_png(filepath: str | Path, image: npt.NDArray[np.uint8]) -> None:
    """Save an 8-bit RGB image with Pillow.

    Args:
        filepath: Output file path. The format follows the suffix (PNG for
            ``.png``). Missing parent directories are created.
        image: Uint8 array of shape (H, W, 3), row 0 at the top.
    """
    path = _ensure_parent(filepath)
    pil_image = PILImage.fromarray(np.ascontiguousarray(image, dtype=np.uint8))
    pil_image.save(path)
    logger.info("Wrote %s", path)


def save_image(filepath: str | Path, image: npt.NDArray[np.uint8]) -> None:
    """Save an 8-bit RGB image, choosing the writer from the file suffix.

    ``.ppm`` files are written as ASCII P3; everything else goes through
    Pillow.

    Args:
        filepath: Output file path.
        image: Uint8 array of shape (H, W, 3), row 0 at the top.
    """
    if Path(filepath).suffix.lower() == PPM_SUFFIX:
        height, width = image.shape[0], image.shape[1]
        write_ppm(filepath, image_to_pixels(image), width, height)
    else:
        save_png(filepath, image)
