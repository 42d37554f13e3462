"""Unit tests for moving spheres.

Tests cover:
- Center interpolation and extrapolation over time
- Intersection at the ray's time
"""

import taichi as ti


class TestMovingSphereCenter:
    """Tests for moving_sphere_center."""

    def test_center_at_endpoints_and_midpoint(self):
        """Test linear interpolation of the center."""
        from pathtracer.core.vector import vec3
        from pathtracer.geometry.moving_sphere import MovingSphere, moving_sphere_center

        centers = ti.Vector.field(3, dtype=ti.f32, shape=4)

        @ti.kernel
        def test_kernel():
            sphere = MovingSphere(
                center0=vec3(0.0, 0.0, 0.0),
                center1=vec3(0.0, 2.0, 0.0),
                time0=0.0,
                time1=1.0,
                radius=0.5,
                material_id=3,
            )
            centers[0] = moving_sphere_center(sphere, 0.0)
            centers[1] = moving_sphere_center(sphere, 0.5)
            centers[2] = moving_sphere_center(sphere, 1.0)
            centers[3] = moving_sphere_center(sphere, 2.0)

        test_kernel()
        c = centers.to_numpy()
        assert abs(c[0][1]) < 1e-6
        assert abs(c[1][1] - 1.0) < 1e-6
        assert abs(c[2][1] - 2.0) < 1e-6
        # Extrapolated beyond time1
        assert abs(c[3][1] - 4.0) < 1e-6


class TestMovingSphereIntersection:
    """Tests for hit_moving_sphere."""

    def test_hit_depends_on_ray_time(self):
        """Test that the same ray hits at one time and misses at another."""
        from pathtracer.core.ray import make_ray
        from pathtracer.core.vector import vec3
        from pathtracer.geometry.moving_sphere import MovingSphere, hit_moving_sphere

        hits = ti.field(dtype=ti.i32, shape=2)
        t_val = ti.field(dtype=ti.f32, shape=())
        material = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = MovingSphere(
                center0=vec3(0.0, 0.0, 0.0),
                center1=vec3(0.0, 2.0, 0.0),
                time0=0.0,
                time1=1.0,
                radius=0.5,
                material_id=3,
            )
            late = make_ray(vec3(0.0, 1.0, 5.0), vec3(0.0, 0.0, -1.0), 0.5)
            early = make_ray(vec3(0.0, 1.0, 5.0), vec3(0.0, 0.0, -1.0), 0.0)
            rec = hit_moving_sphere(late, sphere, 0.001, 1000.0)
            hits[0] = rec.hit
            t_val[None] = rec.t
            material[None] = rec.material_id
            hits[1] = hit_moving_sphere(early, sphere, 0.001, 1000.0).hit

        test_kernel()
        assert hits[0] == 1
        assert abs(t_val[None] - 4.5) < 1e-5
        assert material[None] == 3
        assert hits[1] == 0
