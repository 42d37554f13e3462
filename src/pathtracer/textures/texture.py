"""Texture registry and evaluation.

A texture maps a surface point and its (u, v) coordinates to a color. Four
variants are supported and stored in one structure-of-arrays registry:

    SOLID: A constant color.
    CHECKERED: A 3D object-space checker choosing between two child textures
        by the sign of ``sin(10x) sin(10y) sin(10z)``.
    NOISE: Marble-like Perlin pattern
        ``0.5 (1 + sin(q.x + 5 turbulence(q, 7)))`` with ``q = scale * p``.
    IMAGE: Nearest texel lookup into an uploaded image.

Textures refer to each other and to Perlin generators and images by id.
A checkered texture may only refer to textures registered before it, so the
texture graph is acyclic and evaluation descends it iteratively.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.textures.texture import (
    ...     add_solid_texture, add_checkered_texture
    ... )
    >>> odd = add_solid_texture((0.2, 0.3, 0.1))
    >>> even = add_solid_texture((0.9, 0.9, 0.9))
    >>> checker = add_checkered_texture(odd, even)
    >>> # Inside a kernel: color = sample_texture(checker, u, v, point)
"""

from enum import IntEnum

import taichi as ti

from pathtracer.core.vector import vec3
from pathtracer.textures.image import get_image_count, sample_image
from pathtracer.textures.perlin import get_perlin_count, perlin_turbulence

# Octaves of turbulence in the marble pattern
NOISE_TURBULENCE_DEPTH = 7

# Spatial frequency of the checker pattern
CHECKER_FREQUENCY = 10.0


class TextureType(IntEnum):
    """Enumeration of texture variants."""

    SOLID = 0
    CHECKERED = 1
    NOISE = 2
    IMAGE = 3


# Maximum number of textures in the scene
MAX_TEXTURES = 1024

# Structure of Arrays storage; unused columns are ignored per variant
texture_types = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_odd = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_even = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_scales = ti.field(dtype=ti.f32, shape=MAX_TEXTURES)
# Perlin id for NOISE, image id for IMAGE
texture_refs = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())


def clear_textures() -> None:
    """Clear all textures from the registry."""
    num_textures[None] = 0


def _next_texture_index() -> int:
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")
    return idx


def _add_texture(
    texture_type: TextureType,
    color: tuple[float, float, float] = (0.0, 0.0, 0.0),
    odd: int = -1,
    even: int = -1,
    scale: float = 0.0,
    ref: int = -1,
) -> int:
    idx = _next_texture_index()
    texture_types[idx] = int(texture_type)
    texture_colors[idx] = vec3(color[0], color[1], color[2])
    texture_odd[idx] = odd
    texture_even[idx] = even
    texture_scales[idx] = scale
    texture_refs[idx] = ref
    num_textures[None] = idx + 1
    return idx


def add_solid_texture(color: tuple[float, float, float]) -> int:
    """Add a constant color texture.

    Args:
        color: The RGB color returned everywhere.

    Returns:
        The id of the added texture.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
    """
    return _add_texture(TextureType.SOLID, color=color)


def add_checkered_texture(odd: int, even: int) -> int:
    """Add a 3D checker texture alternating between two textures.

    Args:
        odd: Texture id used where the sine product is negative.
        even: Texture id used elsewhere.

    Returns:
        The id of the added texture.

    Raises:
        ValueError: If either child id does not refer to an existing texture.
        RuntimeError: If the maximum number of textures is exceeded.
    """
    count = get_texture_count()
    for name, child in (("odd", odd), ("even", even)):
        if child < 0 or child >= count:
            raise ValueError(f"Invalid {name} texture id {child}; {count} textures registered")
    return _add_texture(TextureType.CHECKERED, odd=odd, even=even)


def add_noise_texture(perlin_id: int, scale: float) -> int:
    """Add a Perlin marble texture.

    Args:
        perlin_id: Id of a Perlin generator in the Perlin registry.
        scale: Spatial frequency multiplier applied to the point.

    Returns:
        The id of the added texture.

    Raises:
        ValueError: If perlin_id does not refer to a registered generator.
        RuntimeError: If the maximum number of textures is exceeded.
    """
    count = get_perlin_count()
    if perlin_id < 0 or perlin_id >= count:
        raise ValueError(f"Invalid Perlin id {perlin_id}; {count} generators registered")
    return _add_texture(TextureType.NOISE, scale=scale, ref=perlin_id)


def add_image_texture(image_id: int) -> int:
    """Add a texture that samples an uploaded image.

    Raises:
        ValueError: If image_id does not refer to a registered image.
        RuntimeError: If the maximum number of textures is exceeded.
    """
    count = get_image_count()
    if image_id < 0 or image_id >= count:
        raise ValueError(f"Invalid image id {image_id}; {count} images registered")
    return _add_texture(TextureType.IMAGE, ref=image_id)


def get_texture_count() -> int:
    """Get the number of textures in the registry."""
    return int(num_textures[None])


def get_texture_type(texture_id: int) -> TextureType:
    """Get the variant of a registered texture.

    Raises:
        ValueError: If texture_id is out of range.
    """
    count = get_texture_count()
    if texture_id < 0 or texture_id >= count:
        raise ValueError(f"Invalid texture id {texture_id}; {count} textures registered")
    return TextureType(int(texture_types[texture_id]))


@ti.func
def noise_marble(perlin_id: ti.i32, scale: ti.f32, p: vec3) -> vec3:
    """Evaluate the grey marble pattern of a noise texture."""
    q = scale * p
    turbulence = perlin_turbulence(perlin_id, q, NOISE_TURBULENCE_DEPTH)
    value = 0.5 * (1.0 + ti.sin(q.x + 5.0 * turbulence))
    return vec3(value, value, value)


@ti.func
def checker_sign(p: vec3) -> ti.f32:
    """Product of sines selecting the checker cell of a point."""
    return (
        ti.sin(CHECKER_FREQUENCY * p.x)
        * ti.sin(CHECKER_FREQUENCY * p.y)
        * ti.sin(CHECKER_FREQUENCY * p.z)
    )


@ti.func
def sample_texture(texture_id: ti.i32, u: ti.f32, v: ti.f32, p: vec3) -> vec3:
    """Evaluate a texture at a surface point.

    Checkered textures are resolved first by walking down to a leaf texture;
    every checker level sees the same point, so the walk is bounded by the
    number of registered textures.

    Args:
        texture_id: Registry id of the texture.
        u: Surface u coordinate in [0, 1].
        v: Surface v coordinate in [0, 1].
        p: The surface point in world space.

    Returns:
        The RGB color of the texture at the point.
    """
    tex = texture_id
    odd_cell = checker_sign(p) < 0.0
    for _ in range(num_textures[None]):
        if texture_types[tex] == int(TextureType.CHECKERED):
            if odd_cell:
                tex = texture_odd[tex]
            else:
                tex = texture_even[tex]

    color = vec3(0.0, 0.0, 0.0)
    kind = texture_types[tex]
    if kind == int(TextureType.SOLID):
        color = texture_colors[tex]
    elif kind == int(TextureType.NOISE):
        color = noise_marble(texture_refs[tex], texture_scales[tex], p)
    elif kind == int(TextureType.IMAGE):
        color = sample_image(texture_refs[tex], u, v)
    return color
