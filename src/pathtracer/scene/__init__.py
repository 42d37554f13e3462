"""Scene module for the world aggregate and scene management.

Components:
    world: Ordered object registry and nearest-hit queries
    manager: Scene description, id assignment, upload and serialization
    demo_scenes: Named scenes ready to render

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for object data
    - Integer ids linking objects to materials and materials to textures
"""

from .demo_scenes import SCENES, load_scene
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    MovingSphereInfo,
    SceneManager,
    SphereInfo,
    TextureInfo,
    clear_all_registries,
    get_material_type,
    get_material_type_index,
)
from .world import (
    MAX_OBJECTS,
    HittableKind,
    add_moving_sphere,
    add_sphere,
    clear_world,
    get_object_count,
    hit_world,
)

__all__ = [
    # World
    "HittableKind",
    "add_sphere",
    "add_moving_sphere",
    "clear_world",
    "get_object_count",
    "hit_world",
    "MAX_OBJECTS",
    # Manager
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "TextureInfo",
    "SphereInfo",
    "MovingSphereInfo",
    "MAX_MATERIALS",
    "clear_all_registries",
    "get_material_type",
    "get_material_type_index",
    # Demo scenes
    "SCENES",
    "load_scene",
]
