"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    vector: vec3 alias and vector algebra (dot, cross, reflect, refract)
    ray: Ray data structure carrying origin, direction and time
    sampling: Per-pixel random streams and Monte Carlo sampling
    integrator: Radiance estimator, render target and render entry point
    progressive: Batched rendering with progress callbacks

All compute-intensive operations use Taichi kernels.
"""

from .ray import DEFAULT_RAY_TIME, Ray, make_ray, ray_at
from .vector import (
    cross,
    dot,
    length_squared,
    magnitude,
    reflect,
    refract,
    schlick,
    unit_vector,
    vec3,
)

# Note: sampling, integrator and progressive own Taichi fields and are NOT
# imported here. Import them directly once ti.init has run, e.g.:
#   from pathtracer.core.integrator import render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "DEFAULT_RAY_TIME",
    "vec3",
    "dot",
    "cross",
    "length_squared",
    "magnitude",
    "unit_vector",
    "reflect",
    "refract",
    "schlick",
]
