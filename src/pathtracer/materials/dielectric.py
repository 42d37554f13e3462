"""Dielectric (glass-like) material implementation.

A dielectric either refracts or reflects each incoming ray and never absorbs
light, so its attenuation is always white.

The side of the surface is decided from the geometric normal, which always
points out of the sphere:

    exiting  (dot(d, n) > 0): outward = -n, ratio = ior,     cosine = ior * dot(d, n) / |d|
    entering (otherwise):     outward =  n, ratio = 1 / ior, cosine = -dot(d, n) / |d|

If Snell's law has no solution (total internal reflection) the ray reflects.
Otherwise it reflects with the Schlick probability

    R(cos) = r0 + (1 - r0)(1 - cos)^5,  r0 = ((1 - ior) / (1 + ior))^2

and refracts the rest of the time. No check is made that ``ior >= 1``;
indices below 1 simply swap which side behaves like the denser medium.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti

from pathtracer.core.sampling import random_float
from pathtracer.core.vector import dot, magnitude, reflect, refract, schlick, vec3

# Common refractive indices
IOR_AIR = 1.0
IOR_GLASS = 1.5


@ti.func
def dielectric_orientation(ior: ti.f32, incident_direction: vec3, normal: vec3):
    """Work out which side of the surface a ray arrives from.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit outward geometric normal.

    Returns:
        A tuple of (outward_normal, ratio, cosine) where the outward normal
        faces the incoming ray, ratio is the refractive index ratio across
        the surface, and cosine feeds the Schlick approximation.
    """
    d_dot_n = dot(incident_direction, normal)
    length = magnitude(incident_direction)

    outward_normal = normal
    ratio = 1.0 / ior
    cosine = -d_dot_n / length
    if d_dot_n > 0.0:
        outward_normal = -normal
        ratio = ior
        cosine = ior * d_dot_n / length
    return outward_normal, ratio, cosine


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered ray for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit outward geometric normal.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The refracted or reflected direction.
        - attenuation: Always (1, 1, 1).
        - did_scatter: Always 1.
    """
    outward_normal, ratio, cosine = dielectric_orientation(ior, incident_direction, normal)
    refracted, can_refract = refract(incident_direction, outward_normal, ratio)

    scattered_direction = reflect(incident_direction, normal)
    if can_refract == 1:
        if random_float(stream) >= schlick(cosine, ior):
            scattered_direction = refracted

    attenuation = vec3(1.0, 1.0, 1.0)
    return scattered_direction, attenuation, 1


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 512

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = IOR_GLASS) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (glass).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32, incident_direction: vec3, normal: vec3, stream: ti.i32
):
    """Scatter off a registered dielectric material."""
    return scatter_dielectric(dielectric_iors[material_idx], incident_direction, normal, stream)
