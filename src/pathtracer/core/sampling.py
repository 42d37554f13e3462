"""Per-pixel random streams and Monte Carlo sampling helpers.

Every pixel owns an independent xorshift32 generator stored in a Taichi
field. Sampling functions take the stream index explicitly, so parallel
pixels never share random state and a render is reproducible from its seed
regardless of how Taichi schedules the pixel loop.

Streams are seeded on the host from a ``numpy.random.Generator``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampling import seed_streams, random_float
    >>> seed_streams(42)
    >>> # Inside a kernel: xi = random_float(stream)
"""

import numpy as np
import taichi as ti

from pathtracer.core.vector import length_squared, vec3

# One stream per pixel of the largest supported render target
STREAM_GRID_WIDTH = 2048
STREAM_GRID_HEIGHT = 2048
MAX_STREAMS = STREAM_GRID_WIDTH * STREAM_GRID_HEIGHT

# Rejection sampling gives up after this many tries (probability ~1e-33)
MAX_REJECTION_TRIES = 100

_stream_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


def seed_streams(seed: int) -> None:
    """Seed every random stream from a single integer seed.

    Args:
        seed: Seed for the host-side ``numpy.random.Generator`` that draws
            the initial stream states. Equal seeds give equal streams.
    """
    rng = np.random.default_rng(seed)
    # xorshift has a fixed point at zero, so states are drawn from [1, 2^32)
    states = rng.integers(1, 2**32, size=MAX_STREAMS, dtype=np.uint32)
    _stream_states.from_numpy(states)


def stream_index(row: int, col: int) -> int:
    """Get the stream index owned by pixel (row, col)."""
    return row * STREAM_GRID_WIDTH + col


@ti.func
def pixel_stream(row: ti.i32, col: ti.i32) -> ti.i32:
    """Get the stream index owned by pixel (row, col) inside a kernel."""
    return row * STREAM_GRID_WIDTH + col


@ti.func
def random_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream and return its next 32-bit state."""
    x = _stream_states[stream]
    x ^= x << ti.u32(13)
    x ^= ti.bit_shr(x, ti.u32(17))
    x ^= x << ti.u32(5)
    _stream_states[stream] = x
    return x


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a stream.

    Uses the top 24 bits so every value is exactly representable in f32.
    """
    bits = ti.bit_shr(random_u32(stream), ti.u32(8))
    return ti.cast(bits, ti.f32) * (1.0 / 16777216.0)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit sphere.

    Rejection sampling from the enclosing cube.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
            )
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit disk (z = 0).

    Used for lens sampling in depth-of-field.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p
