"""Sphere primitive and the hit record shared by all geometry.

The ray-sphere test solves ``|origin + t * direction - center|^2 = r^2`` with
the half-b form of the quadratic:

    a = dot(d, d)
    half_b = dot(oc, d)
    c = dot(oc, oc) - r^2
    discriminant = half_b^2 - a c

A non-positive discriminant is a miss (tangent rays do not hit). The smaller
root is tried first, then the larger one, and a root only counts when it lies
strictly inside ``(t_min, t_max)``.

The reported normal is ``(p - center) / radius``: unit length and outward
for positive radii. It is not flipped toward the ray; materials that care
about the side (dielectrics) inspect ``dot(direction, normal)`` themselves.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Inside a kernel: hit = hit_sphere(ray, sphere, 0.001, 1e10)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at
from pathtracer.core.vector import dot, vec3


@ti.dataclass
class Sphere:
    """A static sphere.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere.
        material_id: Unified material id used to shade hits.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class RayHit:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit outward surface normal at the point. Only valid if hit == 1.
        u: Surface texture coordinate in [0, 1].
        v: Surface texture coordinate in [0, 1].
        material_id: Unified material id of the surface, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    u: ti.f32
    v: ti.f32
    material_id: ti.i32


@ti.func
def miss_hit() -> RayHit:
    """Create a RayHit indicating no intersection."""
    return RayHit(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        u=0.0,
        v=0.0,
        material_id=-1,
    )


@ti.func
def sphere_uv(normal: vec3):
    """Map a unit outward normal to spherical texture coordinates.

    ``u`` wraps around the y axis and ``v`` runs from the south pole (0) to
    the north pole (1).

    Args:
        normal: Unit outward normal at the surface point.

    Returns:
        A tuple (u, v).
    """
    phi = ti.atan2(normal.z, normal.x)
    # Clamp guards asin against rounding just outside [-1, 1]
    theta = ti.asin(ti.max(-1.0, ti.min(1.0, normal.y)))
    u = 1.0 - (phi + tm.pi) / (2.0 * tm.pi)
    v = (theta + tm.pi / 2.0) / tm.pi
    return u, v


@ti.func
def hit_sphere_at(
    ray: Ray,
    center: vec3,
    radius: ti.f32,
    material_id: ti.i32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> RayHit:
    """Intersect a ray with a sphere given by explicit center and radius.

    Shared by static and moving spheres.

    Args:
        ray: The ray to test.
        center: Sphere center at the ray's time.
        radius: Sphere radius.
        material_id: Material id stored in the hit record.
        t_min: Exclusive lower bound of the hit window.
        t_max: Exclusive upper bound of the hit window.

    Returns:
        The nearest hit inside the window, or a miss record.
    """
    oc = ray.origin - center
    a = dot(ray.direction, ray.direction)
    half_b = dot(oc, ray.direction)
    c = dot(oc, oc) - radius * radius
    discriminant = half_b * half_b - a * c

    result = miss_hit()
    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t = (-half_b - sqrt_d) / a
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = (-half_b + sqrt_d) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_at(ray, t)
            normal = (point - center) / radius
            u, v = sphere_uv(normal)
            result = RayHit(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                u=u,
                v=v,
                material_id=material_id,
            )
    return result


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> RayHit:
    """Test a ray against a static sphere.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.
        t_min: Exclusive lower bound of the hit window.
        t_max: Exclusive upper bound of the hit window.

    Returns:
        A RayHit; check its hit field to see whether the sphere was hit.
    """
    return hit_sphere_at(ray, sphere.center, sphere.radius, sphere.material_id, t_min, t_max)
