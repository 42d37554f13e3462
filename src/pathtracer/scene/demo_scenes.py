"""Named demo scenes.

Each builder returns a SceneManager describing the world and the Camera
framing it, with the camera aspect ratio taken from the image size:

    default:  three spheres (diffuse, metal, glass) on a ground sphere, with
              a wide aperture for depth of field
    spheres:  a field of small random spheres around three feature spheres
    motion:   two spheres moving during an open shutter
    textures: checkered ground, mirror sphere, checkered metal and diffuse
    perlin:   marble spheres textured with Perlin turbulence
    image:    a globe wrapped with an image file

Randomness (sphere placement, Perlin tables) is derived from the seed, so a
name and seed always build the same scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.demo_scenes import load_scene
    >>> scene, camera = load_scene("textures", 400, 200, seed=0)
"""

import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np

from pathtracer.camera.thin_lens import Camera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

UP = (0.0, 1.0, 0.0)

SceneBuilder = Callable[[float, int, Path | None], tuple[SceneManager, Camera]]


def default_scene(
    aspect_ratio: float, seed: int = 0, image_path: Path | None = None
) -> tuple[SceneManager, Camera]:
    """Diffuse, metal and glass spheres on a large ground sphere."""
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.3, 0.2))
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.5, 0.4, 0.1))
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.3, 0.2, 0.8), fuzz=0.1)
    scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, ior=1.5)

    camera = Camera(
        look_from=(-2.0, 2.0, 1.0),
        look_at=(0.0, 0.0, -1.0),
        up=UP,
        vertical_fov=50.0,
        aspect_ratio=aspect_ratio,
        aperture=0.5,
    )
    return scene, camera


def _collides(
    center: np.ndarray, radius: float, features: list[tuple[np.ndarray, float]]
) -> bool:
    """Check whether a sphere overlaps any of the feature spheres."""
    return any(np.linalg.norm(c - center) < r + radius for c, r in features)


def spheres_scene(
    aspect_ratio: float, seed: int = 0, image_path: Path | None = None
) -> tuple[SceneManager, Camera]:
    """Random small spheres scattered around three feature spheres."""
    rng = np.random.default_rng(seed)
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, (0.8, 0.3, 0.2))

    features = [
        (np.array([-3.0, 0.6, 1.5]), 0.6),
        (np.array([-4.0, 1.4, -2.0]), 1.4),
        (np.array([2.0, 0.5, -2.0]), 0.5),
    ]
    scene.add_metal_sphere(tuple(features[0][0]), features[0][1], (0.3, 0.2, 0.8), fuzz=0.05)
    scene.add_metal_sphere(tuple(features[1][0]), features[1][1], (0.6, 0.9, 0.6), fuzz=0.2)
    scene.add_dielectric_sphere(tuple(features[2][0]), features[2][1], ior=1.5)

    for x in range(-11, 11):
        for z in range(-11, 11):
            radius = rng.random() / 5.0
            material_chance = rng.random()
            center = np.array(
                [x + 0.25 + rng.random() / 2.0, radius, z + 0.25 + rng.random() / 2.0]
            )

            if _collides(center, radius, features):
                continue
            if rng.random() >= 0.8:
                continue

            if material_chance < 0.6:
                albedo = (rng.random(), rng.random(), rng.random())
                scene.add_lambertian_sphere(tuple(center), radius, albedo)
            elif material_chance < 0.85:
                albedo = (rng.random(), rng.random(), rng.random())
                scene.add_metal_sphere(tuple(center), radius, albedo, fuzz=rng.random())
            else:
                # Indices below 1 are kept; they render as inverted glass
                scene.add_dielectric_sphere(tuple(center), radius, ior=rng.random())

    logger.debug("Built spheres scene with %d objects", scene.get_object_count())

    camera = Camera(
        look_from=(3.0, 1.5, 2.0),
        look_at=(0.0, 0.0, -1.0),
        up=UP,
        vertical_fov=50.0,
        aspect_ratio=aspect_ratio,
        aperture=0.05,
    )
    return scene, camera


def motion_scene(
    aspect_ratio: float, seed: int = 0, image_path: Path | None = None
) -> tuple[SceneManager, Camera]:
    """One static and two moving spheres seen through an open shutter."""
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -500.0, -1.0), 500.0, (0.5, 0.5, 0.5))
    scene.add_lambertian_sphere((-1.25, 0.5, -1.0), 0.5, (0.8, 0.2, 0.2))

    green = scene.add_lambertian_material(scene.add_solid_texture((0.2, 0.8, 0.2)))
    blue = scene.add_lambertian_material(scene.add_solid_texture((0.2, 0.2, 0.8)))
    scene.add_moving_sphere((0.0, 0.75, -1.0), (0.0, 0.5, -1.0), 0.0, 1.0, 0.5, green)
    scene.add_moving_sphere((1.25, 1.0, -1.0), (1.25, 0.5, -1.0), 0.0, 1.0, 0.5, blue)

    camera = Camera(
        look_from=(0.0, 0.5, 2.0),
        look_at=(0.0, 0.3, -1.0),
        up=UP,
        vertical_fov=70.0,
        aspect_ratio=aspect_ratio,
        shutter_open=0.0,
        shutter_close=1.0,
    )
    return scene, camera


def textures_scene(
    aspect_ratio: float, seed: int = 0, image_path: Path | None = None
) -> tuple[SceneManager, Camera]:
    """Checkered ground with a mirror, a checkered metal and a checkered diffuse sphere."""
    scene = SceneManager()

    def checker(odd: tuple[float, float, float], even: tuple[float, float, float]) -> int:
        return scene.add_checkered_texture(
            scene.add_solid_texture(odd), scene.add_solid_texture(even)
        )

    ground = scene.add_lambertian_material(checker((0.35, 0.35, 0.45), (0.5, 0.5, 0.6)))
    checked_metal = scene.add_metal_material(checker((0.8, 0.2, 0.2), (0.2, 0.8, 0.2)), 0.0)
    checked_diffuse = scene.add_lambertian_material(checker((0.0, 0.0, 0.0), (1.0, 1.0, 1.0)))

    scene.add_sphere((0.0, -500.0, -1.0), 500.0, ground)
    scene.add_metal_sphere((0.0, 0.8, -1.2), 0.8, (0.8, 0.8, 0.8), fuzz=0.0)
    scene.add_sphere((1.8, 0.5, -0.8), 0.5, checked_metal)
    scene.add_sphere((-1.8, 0.5, -0.8), 0.5, checked_diffuse)

    camera = Camera(
        look_from=(0.0, 1.0, 1.5),
        look_at=(0.0, 0.0, -1.0),
        up=UP,
        vertical_fov=70.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def perlin_scene(
    aspect_ratio: float, seed: int = 0, image_path: Path | None = None
) -> tuple[SceneManager, Camera]:
    """A marble sphere on marble ground, each with its own Perlin tables."""
    scene = SceneManager()
    sphere_marble = scene.add_lambertian_material(scene.add_noise_texture(4.0, seed=seed))
    ground_marble = scene.add_lambertian_material(scene.add_noise_texture(4.0, seed=seed + 1))

    scene.add_sphere((0.0, 2.0, -1.0), 2.0, sphere_marble)
    scene.add_sphere((0.0, -500.0, -1.0), 500.0, ground_marble)

    camera = Camera(
        look_from=(-7.0, 3.2, 1.0),
        look_at=(0.0, 0.0, -1.0),
        up=UP,
        vertical_fov=60.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def image_scene(
    aspect_ratio: float, seed: int = 0, image_path: Path | None = None
) -> tuple[SceneManager, Camera]:
    """A globe wrapped with an image, resting on grey ground.

    Raises:
        ValueError: If no image path is given.
    """
    if image_path is None:
        raise ValueError("The 'image' scene requires an image path")

    scene = SceneManager()
    globe = scene.add_lambertian_material(scene.add_image_texture(path=image_path))
    scene.add_sphere((0.0, 2.0, -1.0), 2.0, globe)
    scene.add_lambertian_sphere((0.0, -500.0, -1.0), 500.0, (0.5, 0.5, 0.5))

    camera = Camera(
        look_from=(-7.0, 3.2, 1.0),
        look_at=(0.0, 1.0, -1.0),
        up=UP,
        vertical_fov=60.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


SCENES: dict[str, SceneBuilder] = {
    "default": default_scene,
    "spheres": spheres_scene,
    "motion": motion_scene,
    "textures": textures_scene,
    "perlin": perlin_scene,
    "image": image_scene,
}


def load_scene(
    name: str,
    width: int,
    height: int,
    seed: int = 0,
    image_path: str | Path | None = None,
) -> tuple[SceneManager, Camera]:
    """Build a named demo scene for an image of the given size.

    Args:
        name: One of the names in SCENES.
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Seed for any randomness in the scene.
        image_path: Image file for the "image" scene.

    Returns:
        Tuple of (scene, camera).

    Raises:
        ValueError: If the scene name is unknown, the size is not positive,
            or the "image" scene has no image path.
    """
    builder = SCENES.get(name)
    if builder is None:
        raise ValueError(f"Unknown scene '{name}'. Available scenes: {', '.join(SCENES)}")
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    path = Path(image_path) if image_path is not None else None
    scene, camera = builder(width / height, seed, path)
    logger.info("Loaded scene '%s' (%d objects)", name, scene.get_object_count())
    return scene, camera
