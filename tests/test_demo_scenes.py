"""Tests for the named demo scenes.

Tests cover:
- Every scene name builds a scene and a camera
- Camera aspect ratio follows the image size
- Seeded scenes are reproducible
- Error handling for unknown names, bad sizes and missing images
"""

import numpy as np
import pytest
from PIL import Image


class TestLoadScene:
    """Tests for load_scene."""

    @pytest.mark.parametrize("name", ["default", "spheres", "motion", "textures", "perlin"])
    def test_builds_and_uploads(self, name):
        """Test that each scene builds and fits the registries."""
        from pathtracer.scene.demo_scenes import load_scene
        from pathtracer.scene.world import get_object_count

        scene, camera = load_scene(name, 200, 100, seed=0)
        scene.upload()

        assert scene.get_object_count() > 0
        assert get_object_count() == scene.get_object_count()
        assert camera.aspect_ratio == 2.0

    def test_scene_names_match_config(self):
        """Test that the CLI choices list every scene."""
        from pathtracer.config import SCENE_NAMES
        from pathtracer.scene.demo_scenes import SCENES

        assert tuple(SCENES) == SCENE_NAMES

    def test_default_scene_contents(self):
        """Test the default scene layout."""
        from pathtracer.scene.demo_scenes import load_scene
        from pathtracer.scene.manager import MaterialType

        scene, camera = load_scene("default", 100, 100)

        assert scene.get_object_count() == 4
        assert [m.material_type for m in scene.materials] == [
            MaterialType.LAMBERTIAN,
            MaterialType.LAMBERTIAN,
            MaterialType.METAL,
            MaterialType.DIELECTRIC,
        ]
        assert camera.aperture == 0.5
        assert camera.aspect_ratio == 1.0

    def test_motion_scene_has_moving_spheres(self):
        """Test that the motion scene opens the shutter over the motion."""
        from pathtracer.scene.demo_scenes import load_scene

        scene, camera = load_scene("motion", 200, 100)

        assert len(scene.moving_spheres) == 2
        assert (camera.shutter_open, camera.shutter_close) == (0.0, 1.0)

    def test_perlin_scene_uses_two_generators(self):
        """Test that the perlin scene seeds two distinct noise generators."""
        from pathtracer.scene.demo_scenes import load_scene

        scene, _ = load_scene("perlin", 200, 100, seed=5)

        assert [t.params["seed"] for t in scene.textures] == [5, 6]


class TestSpheresScene:
    """Tests for the random spheres scene."""

    def test_seed_reproduces_scene(self):
        """Test that the same seed gives the same spheres."""
        from pathtracer.scene.demo_scenes import load_scene

        first, _ = load_scene("spheres", 200, 100, seed=42)
        second, _ = load_scene("spheres", 200, 100, seed=42)

        assert first.to_dict() == second.to_dict()

    def test_different_seeds_differ(self):
        """Test that another seed gives other spheres."""
        from pathtracer.scene.demo_scenes import load_scene

        first, _ = load_scene("spheres", 200, 100, seed=1)
        second, _ = load_scene("spheres", 200, 100, seed=2)

        assert first.to_dict() != second.to_dict()

    def test_small_spheres_avoid_feature_spheres(self):
        """Test placement of the random spheres."""
        from pathtracer.scene.demo_scenes import load_scene

        scene, _ = load_scene("spheres", 200, 100, seed=0)
        spheres = scene.spheres
        features = spheres[1:4]
        small = spheres[4:]

        assert len(small) > 0
        for sphere in small:
            # Resting on the ground plane
            assert sphere.center[1] == sphere.radius
            assert 0.0 <= sphere.radius < 0.2
            for feature in features:
                distance = np.linalg.norm(np.subtract(sphere.center, feature.center))
                assert distance >= sphere.radius + feature.radius


class TestLoadSceneErrors:
    """Tests for invalid load_scene arguments."""

    def test_unknown_scene(self):
        """Test that an unknown name lists the available scenes."""
        from pathtracer.scene.demo_scenes import load_scene

        with pytest.raises(ValueError, match="Unknown scene 'cornell'"):
            load_scene("cornell", 200, 100)

    def test_invalid_size(self):
        """Test that a non-positive size raises."""
        from pathtracer.scene.demo_scenes import load_scene

        with pytest.raises(ValueError, match="must be positive"):
            load_scene("default", 200, 0)

    def test_image_scene_requires_path(self):
        """Test that the image scene needs an image file."""
        from pathtracer.scene.demo_scenes import load_scene

        with pytest.raises(ValueError, match="requires an image path"):
            load_scene("image", 200, 100)

    def test_image_scene_with_file(self, tmp_path):
        """Test that the image scene loads and uploads its texture."""
        from pathtracer.scene.demo_scenes import load_scene
        from pathtracer.textures.image import get_image_count

        path = tmp_path / "globe.png"
        Image.fromarray(np.full((8, 16, 3), 90, dtype=np.uint8)).save(path)

        scene, camera = load_scene("image", 200, 100, image_path=str(path))
        scene.upload()

        assert scene.get_object_count() == 2
        assert get_image_count() == 1
        assert camera.look_at == (0.0, 1.0, -1.0)
