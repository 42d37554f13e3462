"""Sphere whose center moves linearly over time, for motion blur.

The center is ``center0`` at ``time0`` and ``center1`` at ``time1`` and is
linearly extrapolated outside that interval. A ray is tested against the
sphere positioned at the ray's own time.
"""

import taichi as ti

from pathtracer.core.ray import Ray
from pathtracer.core.vector import vec3
from pathtracer.geometry.sphere import RayHit, hit_sphere_at


@ti.dataclass
class MovingSphere:
    """A sphere moving between two centers.

    Attributes:
        center0: Center at time0.
        center1: Center at time1.
        time0: Start of the motion interval.
        time1: End of the motion interval (must differ from time0).
        radius: The radius of the sphere.
        material_id: Unified material id used to shade hits.
    """

    center0: vec3
    center1: vec3
    time0: ti.f32
    time1: ti.f32
    radius: ti.f32
    material_id: ti.i32


@ti.func
def moving_sphere_center(sphere: MovingSphere, time: ti.f32) -> vec3:
    """Compute the center of a moving sphere at a given time."""
    fraction = (time - sphere.time0) / (sphere.time1 - sphere.time0)
    return sphere.center0 + fraction * (sphere.center1 - sphere.center0)


@ti.func
def hit_moving_sphere(
    ray: Ray, sphere: MovingSphere, t_min: ti.f32, t_max: ti.f32
) -> RayHit:
    """Test a ray against a moving sphere at the ray's time.

    Args:
        ray: The ray to test; its time selects the sphere position.
        sphere: The moving sphere to test against.
        t_min: Exclusive lower bound of the hit window.
        t_max: Exclusive upper bound of the hit window.

    Returns:
        A RayHit; check its hit field to see whether the sphere was hit.
    """
    center = moving_sphere_center(sphere, ray.time)
    return hit_sphere_at(ray, center, sphere.radius, sphere.material_id, t_min, t_max)
