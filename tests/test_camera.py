"""Unit tests for the thin-lens camera.

Tests cover:
- Camera basis and image plane computed by setup_camera
- Focus distance defaults
- Pinhole ray generation through the image plane
- Lens sampling within the aperture
- Ray times within the shutter interval
"""

import numpy as np
import taichi as ti


def _generate_rays(s: float, t: float, n: int = 1):
    """Generate n camera rays through (s, t), one per stream."""
    from pathtracer.camera.thin_lens import get_ray

    origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
    times = ti.field(dtype=ti.f32, shape=n)

    @ti.kernel
    def test_kernel():
        for i in range(n):
            ray = get_ray(s, t, i)
            origins[i] = ray.origin
            directions[i] = ray.direction
            times[i] = ray.time

    test_kernel()
    return origins.to_numpy(), directions.to_numpy(), times.to_numpy()


class TestCameraConfig:
    """Tests for the Camera dataclass."""

    def test_focus_distance_defaults_to_look_distance(self, sky_camera):
        """Test the focus distance fallback."""
        from pathtracer.camera.thin_lens import Camera

        assert sky_camera.resolved_focus_distance() == 1.0

        camera = Camera(
            look_from=(3.0, 4.0, 0.0),
            look_at=(0.0, 0.0, 0.0),
            up=(0.0, 1.0, 0.0),
            vertical_fov=40.0,
            aspect_ratio=1.0,
        )
        assert abs(camera.resolved_focus_distance() - 5.0) < 1e-12

    def test_explicit_focus_distance(self, sky_camera):
        """Test that an explicit focus distance wins."""
        sky_camera.focus_distance = 2.5

        assert sky_camera.resolved_focus_distance() == 2.5

    def test_to_dict(self, sky_camera):
        """Test camera export."""
        data = sky_camera.to_dict()

        assert data["look_from"] == [0.0, 0.0, 0.0]
        assert data["vertical_fov"] == 90.0
        assert data["aperture"] == 0.0
        assert data["focus_distance"] is None


class TestSetupCamera:
    """Tests for setup_camera."""

    def test_basis_and_image_plane(self, sky_camera):
        """Test basis vectors and viewport for a camera looking down -z."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(sky_camera)
        info = get_camera_info()

        np.testing.assert_allclose(info["origin"], (0.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["u"], (1.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["v"], (0.0, 1.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["w"], (0.0, 0.0, 1.0), atol=1e-6)
        # fov 90 gives half height 1; aspect 2 gives half width 2
        np.testing.assert_allclose(info["horizontal"], (4.0, 0.0, 0.0), atol=1e-5)
        np.testing.assert_allclose(info["vertical"], (0.0, 2.0, 0.0), atol=1e-5)
        np.testing.assert_allclose(info["lower_left"], (-2.0, -1.0, -1.0), atol=1e-5)
        assert info["lens_radius"] == 0.0

    def test_lens_radius_is_half_aperture(self, sky_camera):
        """Test that the aperture is stored as a radius."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        sky_camera.aperture = 0.5
        setup_camera(sky_camera)

        assert abs(get_camera_info()["lens_radius"] - 0.25) < 1e-6

    def test_image_plane_scales_with_focus(self, sky_camera):
        """Test that the image plane sits at the focus distance."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        sky_camera.focus_distance = 3.0
        setup_camera(sky_camera)
        info = get_camera_info()

        np.testing.assert_allclose(info["lower_left"], (-6.0, -3.0, -3.0), atol=1e-5)

    def test_degenerate_camera_gives_nan(self):
        """Test that look_from == look_at is not rejected but yields NaN."""
        from pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        camera = Camera(
            look_from=(1.0, 1.0, 1.0),
            look_at=(1.0, 1.0, 1.0),
            up=(0.0, 1.0, 0.0),
            vertical_fov=60.0,
            aspect_ratio=1.0,
            focus_distance=1.0,
        )
        setup_camera(camera)

        assert np.isnan(get_camera_info()["w"][0])


class TestGetRay:
    """Tests for camera ray generation."""

    def test_center_ray_pinhole(self, sky_camera):
        """Test that the image center ray points along the view direction."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.sampling import seed_streams

        setup_camera(sky_camera)
        seed_streams(0)
        origins, directions, _ = _generate_rays(0.5, 0.5)

        np.testing.assert_allclose(origins[0], (0.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(directions[0], (0.0, 0.0, -1.0), atol=1e-6)

    def test_corner_rays(self, sky_camera):
        """Test that (0, 0) is the lower left and (1, 1) the upper right."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.sampling import seed_streams

        setup_camera(sky_camera)
        seed_streams(0)
        _, lower_left, _ = _generate_rays(0.0, 0.0)
        _, upper_right, _ = _generate_rays(1.0, 1.0)

        np.testing.assert_allclose(lower_left[0], (-2.0, -1.0, -1.0), atol=1e-5)
        np.testing.assert_allclose(upper_right[0], (2.0, 1.0, -1.0), atol=1e-5)

    def test_lens_origins_within_aperture(self, sky_camera):
        """Test that ray origins are spread over the lens disk."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.sampling import seed_streams

        sky_camera.aperture = 0.5
        setup_camera(sky_camera)
        seed_streams(1)
        origins, directions, _ = _generate_rays(0.5, 0.5, n=256)

        radii = np.linalg.norm(origins[:, :2], axis=1)
        assert np.all(radii < 0.25 + 1e-6)
        assert radii.max() > 0.0
        np.testing.assert_allclose(origins[:, 2], 0.0, atol=1e-6)
        # Every ray still passes through the focus point
        focus_points = origins + directions
        np.testing.assert_allclose(focus_points, np.tile([0.0, 0.0, -1.0], (256, 1)), atol=1e-5)

    def test_times_within_shutter(self, sky_camera):
        """Test that ray times are drawn from [shutter_open, shutter_close)."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.sampling import seed_streams

        sky_camera.shutter_open = 1.0
        sky_camera.shutter_close = 2.0
        setup_camera(sky_camera)
        seed_streams(2)
        _, _, times = _generate_rays(0.5, 0.5, n=256)

        assert np.all(times >= 1.0)
        assert np.all(times < 2.0)
        assert times.std() > 0.1

    def test_closed_shutter_gives_constant_time(self, sky_camera):
        """Test that equal shutter times give every ray that time."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.sampling import seed_streams

        setup_camera(sky_camera)
        seed_streams(2)
        _, _, times = _generate_rays(0.5, 0.5, n=16)

        np.testing.assert_array_equal(times, 0.0)


class TestCameraPackage:
    """Tests for the public camera API."""

    def test_exports(self):
        """Test the names exported by the camera package."""
        import pathtracer.camera as camera

        assert sorted(camera.__all__) == [
            "Camera",
            "get_camera_info",
            "get_ray",
            "setup_camera",
        ]
