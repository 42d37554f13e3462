"""Textures module for procedural and image textures.

Components:
    perlin: Perlin gradient tables, noise and turbulence
    image: Image decoding and the texel atlas
    texture: Texture registry and evaluation (solid, checkered, noise, image)

Materials refer to textures by id and evaluate them with sample_texture().
"""

from .image import (
    MAX_IMAGES,
    add_image,
    clear_images,
    get_image_count,
    load_image,
    sample_image,
)
from .perlin import (
    MAX_PERLIN,
    Perlin,
    add_perlin,
    clear_perlin,
    get_perlin_count,
    perlin_noise,
    perlin_turbulence,
)
from .texture import (
    MAX_TEXTURES,
    TextureType,
    add_checkered_texture,
    add_image_texture,
    add_noise_texture,
    add_solid_texture,
    clear_textures,
    get_texture_count,
    get_texture_type,
    sample_texture,
)

__all__ = [
    # Perlin
    "Perlin",
    "add_perlin",
    "clear_perlin",
    "get_perlin_count",
    "perlin_noise",
    "perlin_turbulence",
    "MAX_PERLIN",
    # Image
    "load_image",
    "add_image",
    "clear_images",
    "get_image_count",
    "sample_image",
    "MAX_IMAGES",
    # Texture
    "TextureType",
    "add_solid_texture",
    "add_checkered_texture",
    "add_noise_texture",
    "add_image_texture",
    "clear_textures",
    "get_texture_count",
    "get_texture_type",
    "sample_texture",
    "MAX_TEXTURES",
]
