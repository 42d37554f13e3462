"""Geometry module for shape primitives.

Components:
    sphere: Static sphere, the shared RayHit record and ray-sphere intersection
    moving_sphere: Linearly moving sphere for motion blur

All intersection routines are Taichi functions (@ti.func). Each reports the
nearest hit strictly inside a (t_min, t_max) window:
    hit = hit_shape(ray, shape, t_min, t_max)
"""

from .moving_sphere import MovingSphere, hit_moving_sphere, moving_sphere_center
from .sphere import RayHit, Sphere, hit_sphere, hit_sphere_at, miss_hit, sphere_uv

__all__ = [
    "RayHit",
    "miss_hit",
    "Sphere",
    "hit_sphere",
    "hit_sphere_at",
    "sphere_uv",
    "MovingSphere",
    "hit_moving_sphere",
    "moving_sphere_center",
]
