"""Image texture storage and nearest-texel lookup.

Decoded RGB images are packed into a single flat texel atlas so that image
textures can be sampled from kernels by id. Each registered image records
its offset into the atlas and its dimensions. Images are decoded with Pillow.

Texture coordinates follow the sphere parameterization: ``u`` runs across
columns and ``v`` runs bottom to top, so row 0 of the image is ``v = 1``.
"""

import logging
from pathlib import Path

import numpy as np
import taichi as ti
from PIL import Image

from pathtracer.core.vector import vec3

logger = logging.getLogger(__name__)

# Maximum number of images and total texels across all of them
MAX_IMAGES = 8
MAX_TEXELS = 2048 * 2048

image_texels = ti.Vector.field(3, dtype=ti.u8, shape=MAX_TEXELS)
image_offsets = ti.field(dtype=ti.i32, shape=MAX_IMAGES)
image_widths = ti.field(dtype=ti.i32, shape=MAX_IMAGES)
image_heights = ti.field(dtype=ti.i32, shape=MAX_IMAGES)
num_images = ti.field(dtype=ti.i32, shape=())
num_texels = ti.field(dtype=ti.i32, shape=())


def load_image(path: str | Path) -> np.ndarray:
    """Decode an image file into an RGB array.

    Args:
        path: Path of any image format Pillow can read.

    Returns:
        (height, width, 3) uint8 array, row 0 at the top.

    Raises:
        FileNotFoundError: If the file does not exist.
        PIL.UnidentifiedImageError: If the file is not a readable image.
    """
    with Image.open(path) as img:
        pixels = np.asarray(img.convert("RGB"), dtype=np.uint8)
    logger.debug("Loaded image %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
    return pixels


@ti.kernel
def _upload_texels(offset: ti.i32, texels: ti.types.ndarray()):
    for i in range(texels.shape[0]):
        for c in ti.static(range(3)):
            image_texels[offset + i][c] = texels[i, c]


def clear_images() -> None:
    """Clear all images from the registry."""
    num_images[None] = 0
    num_texels[None] = 0


def add_image(pixels: np.ndarray) -> int:
    """Upload an RGB image into the texel atlas.

    Args:
        pixels: (height, width, 3) array of 8-bit channel values.

    Returns:
        The id of the uploaded image.

    Raises:
        ValueError: If the array is not a non-empty (H, W, 3) image.
        RuntimeError: If the image or texel capacity is exceeded.
    """
    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ValueError(f"Expected a non-empty (H, W, 3) image, got shape {pixels.shape}")

    idx = num_images[None]
    if idx >= MAX_IMAGES:
        raise RuntimeError(f"Maximum number of images ({MAX_IMAGES}) exceeded")

    height, width = pixels.shape[0], pixels.shape[1]
    offset = num_texels[None]
    if offset + width * height > MAX_TEXELS:
        raise RuntimeError(f"Maximum number of image texels ({MAX_TEXELS}) exceeded")

    flat = np.ascontiguousarray(pixels.reshape(-1, 3), dtype=np.uint8)
    _upload_texels(offset, flat)

    image_offsets[idx] = offset
    image_widths[idx] = width
    image_heights[idx] = height
    num_images[None] = idx + 1
    num_texels[None] = offset + width * height
    return idx


def get_image_count() -> int:
    """Get the number of images in the registry."""
    return int(num_images[None])


@ti.func
def sample_image(image_id: ti.i32, u: ti.f32, v: ti.f32) -> vec3:
    """Look up the nearest texel for texture coordinates (u, v).

    Args:
        image_id: Registry id of the image.
        u: Horizontal coordinate, 0 at the left edge.
        v: Vertical coordinate, 0 at the bottom edge.

    Returns:
        The texel color with channels scaled to [0, 1].
    """
    width = image_widths[image_id]
    height = image_heights[image_id]
    i = ti.cast(u * width, ti.i32)
    j = ti.cast((1.0 - v) * height, ti.i32)
    i = ti.max(0, ti.min(i, width - 1))
    j = ti.max(0, ti.min(j, height - 1))
    texel = image_texels[image_offsets[image_id] + j * width + i]
    return vec3(
        ti.cast(texel[0], ti.f32),
        ti.cast(texel[1], ti.f32),
        ti.cast(texel[2], ti.f32),
    ) / 255.0
