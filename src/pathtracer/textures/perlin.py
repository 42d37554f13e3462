"""Perlin gradient noise and turbulence.

A Perlin generator is a table of 256 random unit gradient vectors plus three
independent permutations of ``0..255``, one per axis. Tables are built on the
host from an explicit ``numpy.random.Generator`` and uploaded into a
fixed-capacity registry so noise textures can refer to them by id.

Noise is evaluated by hashing the 8 lattice corners around a point,
dotting each corner gradient with the offset to the point, and blending the
results trilinearly with Hermite smoothing ``t^2 (3 - 2t)``. Values lie in
roughly [-1, 1]. Turbulence sums octaves of doubling frequency and halving
weight and returns the absolute value.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.textures.perlin import Perlin, add_perlin
    >>> perlin_id = add_perlin(Perlin(np.random.default_rng(7)))
    >>> # Inside a kernel: n = perlin_noise(perlin_id, p)
"""

import numpy as np
import taichi as ti

from pathtracer.core.vector import dot, vec3

# Size of the gradient table and of each permutation
POINT_COUNT = 256

# Maximum number of distinct Perlin generators in a scene
MAX_PERLIN = 16


class Perlin:
    """Host-side Perlin gradient and permutation tables.

    Attributes:
        vectors: (256, 3) float32 array of unit gradient vectors.
        perm_x: (256,) int32 permutation of 0..255 for the x axis.
        perm_y: (256,) int32 permutation of 0..255 for the y axis.
        perm_z: (256,) int32 permutation of 0..255 for the z axis.
    """

    def __init__(self, rng: np.random.Generator) -> None:
        """Build the tables from a random generator.

        Args:
            rng: Source of randomness. Two generators in the same state
                produce identical tables.
        """
        vectors = rng.uniform(-1.0, 1.0, size=(POINT_COUNT, 3))
        vectors /= np.linalg.norm(vectors, axis=1, keepdims=True)
        self.vectors = vectors.astype(np.float32)
        self.perm_x = rng.permutation(POINT_COUNT).astype(np.int32)
        self.perm_y = rng.permutation(POINT_COUNT).astype(np.int32)
        self.perm_z = rng.permutation(POINT_COUNT).astype(np.int32)

    @classmethod
    def from_seed(cls, seed: int) -> "Perlin":
        """Build the tables from an integer seed."""
        return cls(np.random.default_rng(seed))


# =============================================================================
# Perlin Registry
# =============================================================================

perlin_vectors = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_PERLIN, POINT_COUNT))
perlin_perm_x = ti.field(dtype=ti.i32, shape=(MAX_PERLIN, POINT_COUNT))
perlin_perm_y = ti.field(dtype=ti.i32, shape=(MAX_PERLIN, POINT_COUNT))
perlin_perm_z = ti.field(dtype=ti.i32, shape=(MAX_PERLIN, POINT_COUNT))
num_perlin = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _upload_perlin(
    perlin_id: ti.i32,
    vectors: ti.types.ndarray(),
    perm_x: ti.types.ndarray(),
    perm_y: ti.types.ndarray(),
    perm_z: ti.types.ndarray(),
):
    for i in range(POINT_COUNT):
        perlin_vectors[perlin_id, i] = vec3(vectors[i, 0], vectors[i, 1], vectors[i, 2])
        perlin_perm_x[perlin_id, i] = perm_x[i]
        perlin_perm_y[perlin_id, i] = perm_y[i]
        perlin_perm_z[perlin_id, i] = perm_z[i]


def clear_perlin() -> None:
    """Clear all Perlin generators from the registry."""
    num_perlin[None] = 0


def add_perlin(perlin: Perlin) -> int:
    """Upload a Perlin generator into the registry.

    Args:
        perlin: The host-side tables to upload.

    Returns:
        The id of the uploaded generator.

    Raises:
        RuntimeError: If the maximum number of generators is exceeded.
    """
    idx = num_perlin[None]
    if idx >= MAX_PERLIN:
        raise RuntimeError(f"Maximum number of Perlin generators ({MAX_PERLIN}) exceeded")
    _upload_perlin(idx, perlin.vectors, perlin.perm_x, perlin.perm_y, perlin.perm_z)
    num_perlin[None] = idx + 1
    return idx


def get_perlin_count() -> int:
    """Get the number of Perlin generators in the registry."""
    return int(num_perlin[None])


# =============================================================================
# Noise Evaluation
# =============================================================================


@ti.func
def perlin_noise(perlin_id: ti.i32, p: vec3) -> ti.f32:
    """Evaluate smoothed gradient noise at a point.

    Args:
        perlin_id: Registry id of the generator to use.
        p: The sample point.

    Returns:
        Noise value in approximately [-1, 1].
    """
    fx = ti.floor(p.x)
    fy = ti.floor(p.y)
    fz = ti.floor(p.z)
    u = p.x - fx
    v = p.y - fy
    w = p.z - fz
    i = ti.cast(fx, ti.i32)
    j = ti.cast(fy, ti.i32)
    k = ti.cast(fz, ti.i32)

    # Hermite smoothing of the blend weights
    uu = u * u * (3.0 - 2.0 * u)
    vv = v * v * (3.0 - 2.0 * v)
    ww = w * w * (3.0 - 2.0 * w)

    accum = 0.0
    for di in ti.static(range(2)):
        for dj in ti.static(range(2)):
            for dk in ti.static(range(2)):
                # & 255 wraps negative lattice coordinates too
                idx = (
                    perlin_perm_x[perlin_id, (i + di) & 255]
                    ^ perlin_perm_y[perlin_id, (j + dj) & 255]
                    ^ perlin_perm_z[perlin_id, (k + dk) & 255]
                )
                gradient = perlin_vectors[perlin_id, idx]
                offset = vec3(u - di, v - dj, w - dk)
                accum += (
                    (di * uu + (1 - di) * (1.0 - uu))
                    * (dj * vv + (1 - dj) * (1.0 - vv))
                    * (dk * ww + (1 - dk) * (1.0 - ww))
                    * dot(gradient, offset)
                )
    return accum


@ti.func
def perlin_turbulence(perlin_id: ti.i32, p: vec3, depth: ti.i32) -> ti.f32:
    """Sum octaves of noise with doubling frequency and halving weight.

    Args:
        perlin_id: Registry id of the generator to use.
        p: The sample point.
        depth: Number of octaves.

    Returns:
        ``|sum_i 0.5^i * noise(2^i * p)|``.
    """
    accum = 0.0
    weight = 1.0
    frequency = 1.0
    for _ in range(depth):
        accum += weight * perlin_noise(perlin_id, p * frequency)
        weight *= 0.5
        frequency *= 2.0
    return ti.abs(accum)
