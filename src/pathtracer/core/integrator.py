"""Path tracing integrator and render target.

The radiance estimator follows a ray through the scene until it escapes,
is absorbed, or reaches the depth limit:

    depth >= MAX_DEPTH     -> black
    no hit in (T_MIN, inf) -> sky gradient
    absorbed               -> black
    scattered              -> attenuation * radiance(scattered, depth + 1)

It is written as a loop that carries the product of attenuations, which is
equivalent to the recursive form and avoids recursion in kernels.

Each pixel accumulates the plain sum of its samples; dividing by the sample
count, taking the square root (gamma 2) and quantizing to 8 bits happens
when the image is read back.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import render
    >>> from pathtracer.scene.demo_scenes import load_scene
    >>> scene, camera = load_scene("default", 200, 100, seed=0)
    >>> pixels = list(render(camera, scene, 200, 100, samples_per_pixel=10))
"""

import logging
from collections.abc import Iterator

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import Camera, get_ray, setup_camera
from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampling import (
    STREAM_GRID_HEIGHT,
    STREAM_GRID_WIDTH,
    pixel_stream,
    random_float,
    seed_streams,
)
from pathtracer.core.vector import unit_vector, vec3
from pathtracer.geometry.sphere import RayHit
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.manager import (
    MaterialType,
    SceneManager,
    get_material_type,
    get_material_type_index,
)
from pathtracer.scene.world import hit_world

logger = logging.getLogger(__name__)

# =============================================================================
# Path Tracing Constants
# =============================================================================

# Paths reaching this many bounces contribute black
MAX_DEPTH = 50

# Lower bound of the hit window, avoids self-intersection ("shadow acne")
T_MIN = 0.001
T_MAX = tm.inf


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = STREAM_GRID_WIDTH
MAX_IMAGE_HEIGHT = STREAM_GRID_HEIGHT

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of radiance samples, indexed [row, col] with row 0 at the top
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int, seed: int = 0) -> None:
    """Initialize the render target and seed the per-pixel random streams.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        seed: Seed of the per-pixel random streams.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    seed_streams(seed)
    clear_render_target()
    logger.debug("Render target set up: %dx%d, seed %d", width, height, seed)


def clear_render_target() -> None:
    """Clear the accumulation buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(ray: Ray, hit: RayHit, stream: ti.i32):
    """Dispatch to the scattering function of the hit material.

    Args:
        ray: The incoming ray.
        hit: The surface hit.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the ray.
    """
    mat_type = get_material_type(hit.material_id)
    type_index = get_material_type_index(hit.material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, hit, stream
        )
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, ray.direction, hit, stream
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, ray.direction, hit.normal, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a direction: white at the horizon, blue overhead."""
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * vec3(1.0, 1.0, 1.0) + t * vec3(0.5, 0.7, 1.0)


@ti.func
def radiance(ray: Ray, depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        depth: Number of bounces already taken; paths reaching MAX_DEPTH
            contribute black.
        stream: The random stream to draw from.

    Returns:
        The estimated radiance (RGB).
    """
    origin = ray.origin
    direction = ray.direction
    time = ray.time
    current_depth = depth

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    # One extra iteration so a path that scattered MAX_DEPTH times reaches
    # the depth check
    for _ in range(MAX_DEPTH + 1):
        if active == 1:
            if current_depth >= MAX_DEPTH:
                active = 0
            else:
                current = make_ray(origin, direction, time)
                hit = hit_world(current, T_MIN, T_MAX)

                if hit.hit == 0:
                    color = throughput * background(direction)
                    active = 0
                else:
                    scattered_direction, attenuation, did_scatter = _scatter_material(
                        current, hit, stream
                    )
                    if did_scatter == 0:
                        active = 0
                    else:
                        throughput *= attenuation
                        origin = hit.point
                        direction = scattered_direction
                        current_depth += 1

    return color


@ti.func
def sample_pixel(row: ti.i32, col: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Trace one jittered camera ray through pixel (row, col).

    Row 0 is the top of the image.
    """
    stream = pixel_stream(row, col)
    s = (ti.cast(col, ti.f32) + random_float(stream)) / ti.cast(width, ti.f32)
    t = 1.0 - (ti.cast(row, ti.f32) + random_float(stream)) / ti.cast(height, ti.f32)
    ray = get_ray(s, t, stream)
    return radiance(ray, 0, stream)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32):
    """Render one sample per pixel and add it to the running sums."""
    for row, col in ti.ndrange(height, width):
        color = sample_pixel(row, col, width, height)
        _color_sum[row, col] += color
        _sample_count[row, col] += 1


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    time: ti.f32,
    depth: ti.i32,
) -> vec3:
    ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz), time)
    return radiance(ray, depth, 0)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    time: float = 0.0,
    depth: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray against the uploaded scene.

    A Python-callable helper for testing and debugging; uses random stream 0.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        time: Ray time.
        depth: Starting bounce depth.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    color = _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], time, depth
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1) -> None:
    """Add samples to every pixel of the render target.

    Can be called repeatedly; samples keep accumulating.

    Args:
        num_samples: Number of samples to render per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Get the averaged linear radiance image.

    Returns:
        Float32 array of shape (height, width, 3), row 0 at the top. Pixels
        without samples are NaN.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    sums = _color_sum.to_numpy()[:height, :width, :]
    counts = _sample_count.to_numpy()[:height, :width, None]
    with np.errstate(divide="ignore", invalid="ignore"):
        image = sums / counts
    return image.astype(np.float32)


def quantize(image: np.ndarray) -> np.ndarray:
    """Convert linear radiance to 8-bit display values.

    Applies square-root gamma, maps NaN to 0, clamps to [0, 1] and
    quantizes as ``floor(255 * c)``.

    Args:
        image: Array of linear radiance values.

    Returns:
        Uint8 array of the same shape.
    """
    with np.errstate(invalid="ignore"):
        corrected = np.sqrt(image)
    corrected = np.nan_to_num(corrected, nan=0.0, posinf=1.0, neginf=0.0)
    corrected = np.clip(corrected, 0.0, 1.0)
    return np.floor(255.0 * corrected).astype(np.uint8)


def get_image_uint8() -> np.ndarray:
    """Get the rendered image as gamma-corrected 8-bit RGB.

    Returns:
        Uint8 array of shape (height, width, 3), row 0 at the top.
    """
    return quantize(get_image_numpy())


def _validate_render_args(width: int, height: int, samples_per_pixel: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")


def prepare_render(
    camera: Camera, world: SceneManager, width: int, height: int, seed: int = 0
) -> None:
    """Upload the world and camera and reset the render target.

    Raises:
        ValueError: If the image dimensions are invalid.
    """
    world.upload()
    setup_camera(camera)
    setup_render_target(width, height, seed)


def render(
    camera: Camera,
    world: SceneManager,
    width: int,
    height: int,
    samples_per_pixel: int,
    seed: int = 0,
) -> Iterator[tuple[int, int, int]]:
    """Render a scene and yield its pixels.

    All work is done before the first pixel is yielded. Identical arguments
    produce identical pixels.

    Args:
        camera: The camera to render from.
        world: The scene to render; it is uploaded before rendering.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples averaged per pixel.
        seed: Seed of the per-pixel random streams.

    Returns:
        An iterator over (r, g, b) byte triples, row by row from the top,
        left to right within a row.

    Raises:
        ValueError: If the dimensions or the sample count are invalid.
    """
    _validate_render_args(width, height, samples_per_pixel)
    logger.info("Rendering %dx%d at %d samples per pixel", width, height, samples_per_pixel)

    prepare_render(camera, world, width, height, seed)
    render_image(samples_per_pixel)

    pixels = get_image_uint8().reshape(-1, 3).tolist()
    return iter([(r, g, b) for r, g, b in pixels])
