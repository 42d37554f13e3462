"""Thin-lens camera with depth of field and a shutter interval.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane sits at ``focus_distance`` in front of the camera. Rays start
at a random point on a lens disk of radius ``aperture / 2`` and pass through
the image plane point, so only geometry at the focus distance is sharp. Each
ray also carries a time drawn uniformly from the shutter interval, which
moving geometry uses for motion blur.

Image coordinates are normalized:
- s = 0: left edge, s = 1: right edge
- t = 0: bottom edge, t = 1: top edge

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import Camera, setup_camera, get_ray
    >>> camera = Camera(
    ...     look_from=(-2.0, 2.0, 1.0),
    ...     look_at=(0.0, 0.0, -1.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     vertical_fov=50.0,
    ...     aspect_ratio=2.0,
    ...     aperture=0.5,
    ... )
    >>> setup_camera(camera)
    >>> # Inside a kernel: ray = get_ray(s, t, stream)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampling import random_float, random_in_unit_disk
from pathtracer.core.vector import vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens camera.

    Attributes:
        look_from: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        up: Up direction vector for camera orientation (typically (0, 1, 0)).
        vertical_fov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_distance: Distance to the plane in perfect focus. Defaults to
            the distance between look_from and look_at.
        shutter_open: Time at which the shutter opens.
        shutter_close: Time at which the shutter closes.
    """

    look_from: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float]
    vertical_fov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_distance: float | None = None
    shutter_open: float = 0.0
    shutter_close: float = 0.0

    def resolved_focus_distance(self) -> float:
        """Get the focus distance, falling back to |look_from - look_at|."""
        if self.focus_distance is not None:
            return float(self.focus_distance)
        offset = np.subtract(self.look_from, self.look_at, dtype=np.float64)
        return float(np.linalg.norm(offset))

    def to_dict(self) -> dict:
        """Export the camera parameters to a JSON-compatible dictionary."""
        return {
            "look_from": list(self.look_from),
            "look_at": list(self.look_at),
            "up": list(self.up),
            "vertical_fov": self.vertical_fov,
            "aspect_ratio": self.aspect_ratio,
            "aperture": self.aperture,
            "focus_distance": self.focus_distance,
            "shutter_open": self.shutter_open,
            "shutter_close": self.shutter_close,
        }


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Image plane at the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_shutter_open = ti.field(dtype=ti.f32, shape=())
_shutter_close = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Compute the camera basis and image plane and store them for kernels.

    Degenerate configurations (look_from == look_at, up parallel to the view
    direction) are not rejected; they produce NaN vectors and a NaN image.

    Args:
        camera: Camera configuration.
    """
    theta = math.radians(camera.vertical_fov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height
    focus = camera.resolved_focus_distance()

    look_from = np.array(camera.look_from, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    up = np.array(camera.up, dtype=np.float64)

    with np.errstate(divide="ignore", invalid="ignore"):
        # w points from look_at toward look_from (backward)
        w = look_from - look_at
        w = w / np.linalg.norm(w)

        # u points right (perpendicular to w and up)
        u = np.cross(up, w)
        u = u / np.linalg.norm(u)

    # v points up in the camera's frame
    v = np.cross(w, u)

    horizontal = 2.0 * half_width * focus * u
    vertical = 2.0 * half_height * focus * v
    lower_left = look_from - half_width * focus * u - half_height * focus * v - focus * w

    _camera_origin[None] = look_from.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0
    _shutter_open[None] = camera.shutter_open
    _shutter_close[None] = camera.shutter_close


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, stream: ti.i32) -> Ray:
    """Generate a camera ray through normalized image coordinates (s, t).

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).
        stream: The random stream used for the lens and time samples.

    Returns:
        A Ray from a point on the lens through the image plane point. The
        direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk(stream)
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y
    origin = _camera_origin[None] + offset

    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - _camera_origin[None]
        - offset
    )

    time0 = _shutter_open[None]
    time = time0 + random_float(stream) * (_shutter_close[None] - time0)
    return make_ray(origin, direction, time)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left,
        lens_radius, shutter_open and shutter_close.
    """

    def _vec(f) -> tuple[float, float, float]:
        value = f[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _vec(_camera_origin),
        "u": _vec(_camera_u),
        "v": _vec(_camera_v),
        "w": _vec(_camera_w),
        "horizontal": _vec(_viewport_horizontal),
        "vertical": _vec(_viewport_vertical),
        "lower_left": _vec(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
        "shutter_open": float(_shutter_open[None]),
        "shutter_close": float(_shutter_close[None]),
    }
