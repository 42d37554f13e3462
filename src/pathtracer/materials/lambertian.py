"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters toward a random point inside the unit sphere
tangent to the hit point, which gives a cosine-like distribution around the
normal:

    target = point + normal + random_in_unit_sphere()
    scattered direction = target - point

The attenuation is the material texture evaluated at the hit, and the
material always scatters.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)
"""

import taichi as ti

from pathtracer.core.sampling import random_in_unit_sphere
from pathtracer.core.vector import vec3
from pathtracer.geometry.sphere import RayHit
from pathtracer.textures.texture import get_texture_count, sample_texture


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, stream: ti.i32):
    """Sample a scattered direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance at the hit point (RGB).
        normal: The unit surface normal at the hit point.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: ``normal + random_in_unit_sphere()``, not
          normalized.
        - attenuation: The albedo.
        - did_scatter: Always 1.
    """
    scattered_direction = normal + random_in_unit_sphere(stream)
    return scattered_direction, albedo, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 512

# Storage for Lambertian material properties
lambertian_textures = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(texture_id: int) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        texture_id: Id of a registered texture giving the reflectance.

    Returns:
        The index of the added material.

    Raises:
        ValueError: If texture_id does not refer to a registered texture.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    count = get_texture_count()
    if texture_id < 0 or texture_id >= count:
        raise ValueError(f"Invalid texture id {texture_id}; {count} textures registered")

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_textures[idx] = texture_id
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, hit: RayHit, stream: ti.i32):
    """Scatter off a registered Lambertian material.

    Evaluates the material texture at the hit and calls scatter_lambertian.

    Args:
        material_idx: The index of the material in the registry.
        hit: The surface hit being shaded.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = sample_texture(lambertian_textures[material_idx], hit.u, hit.v, hit.point)
    return scatter_lambertian(albedo, hit.normal, stream)
