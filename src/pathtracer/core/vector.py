"""Vector algebra for GPU-accelerated ray tracing.

Points, directions and colors all share the ``vec3`` type from
``taichi.math``. Arithmetic (``+``, ``-``, component-wise ``*``, scalar
``*`` and ``/``, unary ``-``) comes from the Taichi vector type itself; this
module adds the named operations the renderer relies on.

All functions are pure ``@ti.func`` helpers and must be called from inside a
Taichi kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.vector import cross, unit_vector, vec3
    >>> # Inside a kernel:
    >>> # n = unit_vector(cross(vec3(1, 0, 0), vec3(0, 1, 0)))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than magnitude() when only comparing lengths.
    """
    return dot(v, v)


@ti.func
def magnitude(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        ``v / |v|``. A zero-length input yields NaN components; callers are
        responsible for never normalizing the zero vector.
    """
    return v / magnitude(v)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The mirrored direction ``incident - 2 (incident . normal) normal``.
    """
    return incident - 2.0 * dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ratio: ti.f32):
    """Refract a direction through a surface using Snell's law.

    The incident direction is normalized first; the normal must face the
    incoming ray.

    Args:
        incident: The incoming direction (any non-zero length).
        normal: The unit normal on the incident side of the surface.
        ratio: Ratio of refractive indices (incident over transmitted).

    Returns:
        A tuple ``(refracted, can_refract)``. When the discriminant
        ``1 - ratio^2 (1 - cos^2)`` is not positive the ray is totally
        internally reflected, ``can_refract`` is 0 and ``refracted`` is zero.
    """
    unit = unit_vector(incident)
    dt = dot(unit, normal)
    discriminant = 1.0 - ratio * ratio * (1.0 - dt * dt)

    refracted = vec3(0.0, 0.0, 0.0)
    can_refract = 0
    if discriminant > 0.0:
        refracted = ratio * (unit - normal * dt) - normal * ti.sqrt(discriminant)
        can_refract = 1
    return refracted, can_refract


@ti.func
def schlick(cosine: ti.f32, refractive_index: ti.f32) -> ti.f32:
    """Schlick's approximation of angle-dependent Fresnel reflectance.

    Args:
        cosine: Cosine of the angle between the ray and the normal.
        refractive_index: Index of refraction of the material.

    Returns:
        ``r0 + (1 - r0)(1 - cosine)^5`` with ``r0 = ((1 - n) / (1 + n))^2``.
    """
    r0 = (1.0 - refractive_index) / (1.0 + refractive_index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
