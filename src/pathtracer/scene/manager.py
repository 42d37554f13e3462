"""Unified scene manager coordinating textures, materials and objects.

The SceneManager builds a scene description on the Python side and assigns
each texture, material and object a stable integer id (its position in the
description). ``upload()`` then writes the whole description into the Taichi
registries in id order, so the ids seen by kernels match the ids handed out
while building. Several managers can coexist; whichever was uploaded last is
the one kernels see.

The manager also owns the unified material table: a material id maps to a
(material_type, type_local_index) pair, which the integrator uses to
dispatch to the right scattering function.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_solid_texture((0.8, 0.3, 0.2))
    >>> diffuse = scene.add_lambertian_material(red)
    >>> scene.add_sphere((0, 0, -1), 0.5, diffuse)
    >>> scene.upload()
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import numpy as np
import taichi as ti

from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.world import (
    MAX_OBJECTS,
    HittableKind,
    add_moving_sphere,
    add_sphere,
    clear_world,
)
from pathtracer.textures.image import add_image, clear_images, load_image
from pathtracer.textures.perlin import Perlin, add_perlin, clear_perlin
from pathtracer.textures.texture import (
    MAX_TEXTURES,
    TextureType,
    add_checkered_texture,
    add_image_texture,
    add_noise_texture,
    add_solid_texture,
    clear_textures,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1536  # 512 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


def _register_material(material_type: MaterialType, type_index: int) -> int:
    """Append an entry to the unified material table and return its id."""
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def clear_all_registries() -> None:
    """Empty every scene registry (objects, materials, textures, noise, images)."""
    clear_world()
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    _clear_material_tracking()
    clear_textures()
    clear_perlin()
    clear_images()


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific material arrays, or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class TextureInfo:
    """Description of a texture in the scene.

    Attributes:
        texture_id: The texture id.
        texture_type: The texture variant.
        params: The texture parameters as provided during creation.
    """

    texture_id: int
    texture_type: TextureType
    params: dict[str, Any]


@dataclass
class MaterialInfo:
    """Description of a material in the scene.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Description of a static sphere in the scene."""

    center: tuple[float, float, float]
    radius: float
    material_id: int
    kind: HittableKind = field(default=HittableKind.SPHERE, init=False)


@dataclass
class MovingSphereInfo:
    """Description of a moving sphere in the scene.

    Attributes:
        center0: The center at time0.
        center1: The center at time1.
        time0: Start of the motion interval.
        time1: End of the motion interval.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    center0: tuple[float, float, float]
    center1: tuple[float, float, float]
    time0: float
    time1: float
    radius: float
    material_id: int
    kind: HittableKind = field(default=HittableKind.MOVING_SPHERE, init=False)


def _as_vec(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Scene builder coordinating textures, materials and objects.

    Attributes:
        textures: TextureInfo for every texture, indexed by texture id.
        materials: MaterialInfo for every material, indexed by material id.
        objects: SphereInfo / MovingSphereInfo in world order.
        strict: When True, spheres with a non-positive radius are rejected.

    Example:
        >>> scene = SceneManager()
        >>> _, red = scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.8, 0.1, 0.1))
        >>> scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_dielectric_sphere((-1, 0, -1), 0.5, ior=1.5)
        >>> scene.upload()
    """

    def __init__(self, strict: bool = False) -> None:
        """Initialize an empty scene.

        Args:
            strict: Reject degenerate geometry instead of letting it render
                as NaN.
        """
        self.strict = strict
        self.textures: list[TextureInfo] = []
        self.materials: list[MaterialInfo] = []
        self.objects: list[SphereInfo | MovingSphereInfo] = []
        # Decoded pixels of image textures, keyed by texture id
        self._image_pixels: dict[int, np.ndarray] = {}

    def clear(self) -> None:
        """Remove every texture, material and object from the description."""
        self.textures.clear()
        self.materials.clear()
        self.objects.clear()
        self._image_pixels.clear()

    # =========================================================================
    # Texture Management
    # =========================================================================

    def _add_texture(self, texture_type: TextureType, params: dict[str, Any]) -> int:
        texture_id = len(self.textures)
        if texture_id >= MAX_TEXTURES:
            raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")
        self.textures.append(TextureInfo(texture_id, texture_type, params))
        return texture_id

    def _check_texture_id(self, texture_id: int) -> None:
        if texture_id < 0 or texture_id >= len(self.textures):
            raise ValueError(f"Invalid texture_id: {texture_id}")

    def add_solid_texture(self, color: tuple[float, float, float]) -> int:
        """Add a constant color texture and return its id."""
        return self._add_texture(TextureType.SOLID, {"color": _as_vec(color)})

    def add_checkered_texture(self, odd: int, even: int) -> int:
        """Add a 3D checker of two existing textures.

        Raises:
            ValueError: If either texture id is invalid.
        """
        self._check_texture_id(odd)
        self._check_texture_id(even)
        return self._add_texture(TextureType.CHECKERED, {"odd": odd, "even": even})

    def add_noise_texture(self, scale: float, seed: int = 0) -> int:
        """Add a Perlin marble texture.

        Args:
            scale: Spatial frequency multiplier.
            seed: Seed of the Perlin tables. Textures sharing a seed share
                one generator.

        Returns:
            The texture id.
        """
        return self._add_texture(TextureType.NOISE, {"scale": float(scale), "seed": int(seed)})

    def add_image_texture(
        self,
        path: str | Path | None = None,
        pixels: np.ndarray | None = None,
    ) -> int:
        """Add an image texture from a file or from decoded pixels.

        The file is decoded immediately so a missing image fails here rather
        than at upload time.

        Args:
            path: Image file to load.
            pixels: (H, W, 3) uint8 array, used when no path is given.

        Returns:
            The texture id.

        Raises:
            ValueError: If neither or both of path and pixels are given.
            FileNotFoundError: If the image file does not exist.
        """
        if (path is None) == (pixels is None):
            raise ValueError("Exactly one of path or pixels must be given")
        if path is not None:
            pixels = load_image(path)
        params = {"path": str(path) if path is not None else None}
        texture_id = self._add_texture(TextureType.IMAGE, params)
        self._image_pixels[texture_id] = np.asarray(pixels, dtype=np.uint8)
        return texture_id

    # =========================================================================
    # Material Management
    # =========================================================================

    def _add_material(self, material_type: MaterialType, params: dict[str, Any]) -> int:
        material_id = len(self.materials)
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
        self.materials.append(MaterialInfo(material_id, material_type, params))
        return material_id

    def add_lambertian_material(self, texture_id: int) -> int:
        """Add a diffuse material colored by a texture.

        Raises:
            ValueError: If texture_id is invalid.
        """
        self._check_texture_id(texture_id)
        return self._add_material(MaterialType.LAMBERTIAN, {"texture_id": texture_id})

    def add_metal_material(self, texture_id: int, fuzz: float = 0.0) -> int:
        """Add a metal material colored by a texture.

        Args:
            texture_id: The texture giving the reflectance.
            fuzz: Reflection perturbation; values above 1 are clamped to 1.

        Raises:
            ValueError: If texture_id is invalid.
        """
        self._check_texture_id(texture_id)
        return self._add_material(
            MaterialType.METAL, {"texture_id": texture_id, "fuzz": float(fuzz)}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass-like) material."""
        return self._add_material(MaterialType.DIELECTRIC, {"ior": float(ior)})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Object Management
    # =========================================================================

    def _check_object(self, radius: float, material_id: int) -> None:
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        if self.strict and not radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        if len(self.objects) >= MAX_OBJECTS:
            raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a static sphere to the scene.

        Returns:
            The index of the object in world order.

        Raises:
            ValueError: If material_id is invalid, or the radius is not
                positive in strict mode.
        """
        self._check_object(radius, material_id)
        self.objects.append(SphereInfo(_as_vec(center), float(radius), material_id))
        return len(self.objects) - 1

    def add_moving_sphere(
        self,
        center0: tuple[float, float, float],
        center1: tuple[float, float, float],
        time0: float,
        time1: float,
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere moving from center0 at time0 to center1 at time1.

        Returns:
            The index of the object in world order.

        Raises:
            ValueError: If material_id is invalid, or the radius is not
                positive in strict mode.
        """
        self._check_object(radius, material_id)
        info = MovingSphereInfo(
            _as_vec(center0),
            _as_vec(center1),
            float(time0),
            float(time1),
            float(radius),
            material_id,
        )
        self.objects.append(info)
        return len(self.objects) - 1

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new solid-color Lambertian material.

        Returns:
            Tuple of (object_index, material_id).
        """
        material_id = self.add_lambertian_material(self.add_solid_texture(albedo))
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new solid-color metal material.

        Returns:
            Tuple of (object_index, material_id).
        """
        material_id = self.add_metal_material(self.add_solid_texture(albedo), fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (object_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    @property
    def spheres(self) -> list[SphereInfo]:
        """Static spheres in world order."""
        return [obj for obj in self.objects if obj.kind == HittableKind.SPHERE]

    @property
    def moving_spheres(self) -> list[MovingSphereInfo]:
        """Moving spheres in world order."""
        return [obj for obj in self.objects if obj.kind == HittableKind.MOVING_SPHERE]

    def get_texture_count(self) -> int:
        """Get the number of textures in the scene."""
        return len(self.textures)

    def get_object_count(self) -> int:
        """Get the total number of objects in the scene."""
        return len(self.objects)

    # =========================================================================
    # Upload
    # =========================================================================

    def upload(self) -> None:
        """Write the scene description into the Taichi registries.

        Every registry is cleared first, then textures, materials and objects
        are added in id order.

        Raises:
            RuntimeError: If a registry capacity is exceeded, or a texture
                registry already holding entries shifts the texture ids.
        """
        clear_all_registries()

        perlin_ids: dict[int, int] = {}
        for info in self.textures:
            params = info.params
            if info.texture_type == TextureType.SOLID:
                texture_id = add_solid_texture(params["color"])
            elif info.texture_type == TextureType.CHECKERED:
                texture_id = add_checkered_texture(params["odd"], params["even"])
            elif info.texture_type == TextureType.NOISE:
                seed = params["seed"]
                if seed not in perlin_ids:
                    perlin_ids[seed] = add_perlin(Perlin.from_seed(seed))
                texture_id = add_noise_texture(perlin_ids[seed], params["scale"])
            else:
                image_id = add_image(self._image_pixels[info.texture_id])
                texture_id = add_image_texture(image_id)
            if texture_id != info.texture_id:
                raise RuntimeError(
                    f"Texture {info.texture_id} was uploaded with id {texture_id}"
                )

        for mat in self.materials:
            params = mat.params
            if mat.material_type == MaterialType.LAMBERTIAN:
                type_index = add_lambertian_material(params["texture_id"])
            elif mat.material_type == MaterialType.METAL:
                type_index = add_metal_material(params["texture_id"], params["fuzz"])
            else:
                type_index = add_dielectric_material(params["ior"])
            _register_material(mat.material_type, type_index)

        for obj in self.objects:
            if obj.kind == HittableKind.SPHERE:
                add_sphere(obj.center, obj.radius, obj.material_id)
            else:
                add_moving_sphere(
                    obj.center0, obj.center1, obj.time0, obj.time1, obj.radius, obj.material_id
                )

        logger.debug(
            "Uploaded scene: %d textures, %d materials, %d objects",
            len(self.textures),
            len(self.materials),
            len(self.objects),
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with "textures", "materials" and "objects" lists.

        Raises:
            ValueError: If an image texture was created from raw pixels and
                has no path to serialize.
        """
        textures = []
        for info in self.textures:
            if info.texture_type == TextureType.IMAGE and info.params["path"] is None:
                raise ValueError(
                    f"Image texture {info.texture_id} has no source path and cannot be serialized"
                )
            entry: dict[str, Any] = {"type": info.texture_type.name.lower()}
            for key, value in info.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            textures.append(entry)

        materials = [
            {"type": mat.material_type.name.lower(), **mat.params} for mat in self.materials
        ]

        objects: list[dict[str, Any]] = []
        for obj in self.objects:
            if obj.kind == HittableKind.SPHERE:
                objects.append(
                    {
                        "type": "sphere",
                        "center": list(obj.center),
                        "radius": obj.radius,
                        "material_id": obj.material_id,
                    }
                )
            else:
                objects.append(
                    {
                        "type": "moving_sphere",
                        "center0": list(obj.center0),
                        "center1": list(obj.center1),
                        "time0": obj.time0,
                        "time1": obj.time1,
                        "radius": obj.radius,
                        "material_id": obj.material_id,
                    }
                )

        return {"textures": textures, "materials": materials, "objects": objects}

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "SceneManager":
        """Create a scene from a dictionary.

        Args:
            data: Dictionary as produced by to_dict().
            strict: Passed to the new manager.

        Returns:
            A new SceneManager holding the described scene.

        Raises:
            ValueError: If the dictionary contains unknown types or invalid ids.
        """
        scene = cls(strict=strict)

        for tex in data.get("textures", []):
            tex_type = tex.get("type", "").lower()
            if tex_type == "solid":
                scene.add_solid_texture(_as_vec(tex["color"]))
            elif tex_type == "checkered":
                scene.add_checkered_texture(tex["odd"], tex["even"])
            elif tex_type == "noise":
                scene.add_noise_texture(tex["scale"], tex.get("seed", 0))
            elif tex_type == "image":
                scene.add_image_texture(path=tex["path"])
            else:
                raise ValueError(f"Unknown texture type: {tex_type}")

        for mat in data.get("materials", []):
            mat_type = mat.get("type", "").lower()
            if mat_type == "lambertian":
                scene.add_lambertian_material(mat["texture_id"])
            elif mat_type == "metal":
                scene.add_metal_material(mat["texture_id"], mat.get("fuzz", 0.0))
            elif mat_type == "dielectric":
                scene.add_dielectric_material(mat.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for obj in data.get("objects", []):
            obj_type = obj.get("type", "").lower()
            if obj_type == "sphere":
                scene.add_sphere(_as_vec(obj["center"]), obj["radius"], obj["material_id"])
            elif obj_type == "moving_sphere":
                scene.add_moving_sphere(
                    _as_vec(obj["center0"]),
                    _as_vec(obj["center1"]),
                    obj["time0"],
                    obj["time1"],
                    obj["radius"],
                    obj["material_id"],
                )
            else:
                raise ValueError(f"Unknown object type: {obj_type}")

        return scene
