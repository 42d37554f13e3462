"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field created at import time.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear every registry and the render target around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any field is created
    from pathtracer.core.integrator import clear_render_target
    from pathtracer.scene.manager import clear_all_registries

    def _clear_all():
        clear_all_registries()
        clear_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def sky_camera():
    """A pinhole camera at the origin looking down -z with a 2:1 image."""
    from pathtracer.camera.thin_lens import Camera

    return Camera(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        up=(0.0, 1.0, 0.0),
        vertical_fov=90.0,
        aspect_ratio=2.0,
    )
