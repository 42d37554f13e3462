"""World aggregate: every hittable object in the scene, queried as a whole.

Objects of all kinds live in one ordered structure-of-arrays registry tagged
with a HittableKind. A query walks the list once, shrinking the upper bound
of the hit window to the closest hit found so far, so the result is the
nearest intersection in front of the ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.world import add_sphere, clear_world, hit_world
    >>> clear_world()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Inside a kernel: hit = hit_world(ray, 0.001, 1e10)
"""

from enum import IntEnum

import taichi as ti

from pathtracer.core.ray import Ray
from pathtracer.core.vector import vec3
from pathtracer.geometry.moving_sphere import MovingSphere, hit_moving_sphere
from pathtracer.geometry.sphere import RayHit, Sphere, hit_sphere, miss_hit


class HittableKind(IntEnum):
    """Enumeration of hittable object kinds."""

    SPHERE = 0
    MOVING_SPHERE = 1


# Maximum number of objects in the world
MAX_OBJECTS = 2048

# Structure of Arrays storage. Static spheres only use center0.
object_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_centers0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_centers1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_times0 = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
object_times1 = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
object_radii = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())


def clear_world() -> None:
    """Remove all objects from the world."""
    num_objects[None] = 0


def _next_object_index() -> int:
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    return idx


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a static sphere to the world.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        material_id: The unified material id used to shade the sphere.

    Returns:
        The index of the added object.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    idx = _next_object_index()
    object_kinds[idx] = int(HittableKind.SPHERE)
    object_centers0[idx] = vec3(center[0], center[1], center[2])
    object_centers1[idx] = vec3(center[0], center[1], center[2])
    object_times0[idx] = 0.0
    object_times1[idx] = 1.0
    object_radii[idx] = radius
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def add_moving_sphere(
    center0: tuple[float, float, float],
    center1: tuple[float, float, float],
    time0: float,
    time1: float,
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a linearly moving sphere to the world.

    Args:
        center0: The center at time0.
        center1: The center at time1.
        time0: Start of the motion interval.
        time1: End of the motion interval.
        radius: The radius of the sphere.
        material_id: The unified material id used to shade the sphere.

    Returns:
        The index of the added object.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    idx = _next_object_index()
    object_kinds[idx] = int(HittableKind.MOVING_SPHERE)
    object_centers0[idx] = vec3(center0[0], center0[1], center0[2])
    object_centers1[idx] = vec3(center1[0], center1[1], center1[2])
    object_times0[idx] = time0
    object_times1[idx] = time1
    object_radii[idx] = radius
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def get_object_count() -> int:
    """Get the number of objects in the world."""
    return int(num_objects[None])


@ti.func
def hit_object(idx: ti.i32, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> RayHit:
    """Test a ray against a single object of any kind."""
    result = miss_hit()
    kind = object_kinds[idx]
    if kind == int(HittableKind.SPHERE):
        sphere = Sphere(
            center=object_centers0[idx],
            radius=object_radii[idx],
            material_id=object_material_ids[idx],
        )
        result = hit_sphere(ray, sphere, t_min, t_max)
    elif kind == int(HittableKind.MOVING_SPHERE):
        moving = MovingSphere(
            center0=object_centers0[idx],
            center1=object_centers1[idx],
            time0=object_times0[idx],
            time1=object_times1[idx],
            radius=object_radii[idx],
            material_id=object_material_ids[idx],
        )
        result = hit_moving_sphere(ray, moving, t_min, t_max)
    return result


@ti.func
def hit_world(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> RayHit:
    """Find the nearest hit of a ray against every object in the world.

    Args:
        ray: The ray to test.
        t_min: Exclusive lower bound of the hit window.
        t_max: Exclusive upper bound of the hit window.

    Returns:
        The nearest RayHit strictly inside the window, or a miss record.
    """
    # Track the closest hit so far
    closest_t = t_max
    result = miss_hit()

    for i in range(num_objects[None]):
        rec = hit_object(i, ray, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result
