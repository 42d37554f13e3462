"""Ray data structure for GPU-accelerated ray tracing.

A ray is a semi-infinite line ``origin + t * direction`` carrying the time
at which it was emitted. Time is sampled across the camera shutter and is
used to evaluate moving geometry (motion blur); scattered rays inherit the
time of the ray that spawned them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction, time=0.0)
    >>> # Inside a kernel: point = ray_at(ray, 5.0)
"""

import taichi as ti

from pathtracer.core.vector import vec3

# Time assigned to rays when motion blur is disabled
DEFAULT_RAY_TIME = 0.0


@ti.dataclass
class Ray:
    """A ray with an origin, a direction and an emission time.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector (vec3). Not required to be unit
            length; intersection and shading code handles any magnitude.
        time: Shutter time at which the ray exists.
    """

    origin: vec3
    direction: vec3
    time: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point ``ray.origin + t * ray.direction``."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, time: ti.f32) -> Ray:
    """Create a ray from origin, direction and time inside a kernel."""
    return Ray(origin=origin, direction=direction, time=time)
