"""Metal (specular reflective) material implementation.

A metal reflects the normalized incident direction about the normal:

    R = I - 2(I . N)N

and perturbs the result by ``fuzz * random_in_unit_sphere()``. A fuzz of 0
is a perfect mirror. When the perturbed direction ends up below the surface
(``dot(R, N) <= 0``) the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti

from pathtracer.core.sampling import random_in_unit_sphere
from pathtracer.core.vector import dot, reflect, unit_vector, vec3
from pathtracer.geometry.sphere import RayHit
from pathtracer.textures.texture import get_texture_count, sample_texture

# Fuzz values above this are clamped at registration
MAX_FUZZ = 1.0


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered ray for a metal surface.

    Args:
        albedo: The reflectance color at the hit point.
        fuzz: Perturbation radius of the reflection.
        incident_direction: The incoming ray direction (any length).
        normal: The unit outward surface normal.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The fuzzed reflection.
        - attenuation: The albedo.
        - did_scatter: 1 if the direction leaves the surface, 0 if absorbed.
    """
    reflected = reflect(unit_vector(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_in_unit_sphere(stream)

    did_scatter = 0
    if dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 512

# Storage for metal material properties
metal_textures = ti.field(dtype=ti.i32, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(texture_id: int, fuzz: float = 0.0) -> int:
    """Add a metal material to the material registry.

    Args:
        texture_id: Id of a registered texture giving the reflectance.
        fuzz: Reflection perturbation. Values above 1 are clamped to 1.

    Returns:
        The index of the added material.

    Raises:
        ValueError: If texture_id does not refer to a registered texture.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    count = get_texture_count()
    if texture_id < 0 or texture_id >= count:
        raise ValueError(f"Invalid texture id {texture_id}; {count} textures registered")

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_textures[idx] = texture_id
    metal_fuzz[idx] = min(fuzz, MAX_FUZZ)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


def get_metal_fuzz(material_idx: int) -> float:
    """Get the stored (clamped) fuzz of a metal material."""
    return float(metal_fuzz[material_idx])


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, ray_direction: vec3, hit: RayHit, stream: ti.i32):
    """Scatter off a registered metal material.

    Args:
        material_idx: The index of the material in the registry.
        ray_direction: The incoming ray direction.
        hit: The surface hit being shaded.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = sample_texture(metal_textures[material_idx], hit.u, hit.v, hit.point)
    return scatter_metal(albedo, metal_fuzz[material_idx], ray_direction, hit.normal, stream)
