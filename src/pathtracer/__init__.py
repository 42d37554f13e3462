"""Taichi-accelerated Monte Carlo path tracer.

This package renders scenes of spheres (static and moving) with diffuse,
metal and glass materials, procedural textures and a thin-lens camera:
- Path tracing with a depth-limited radiance estimator
- Material models (Lambertian, metal, dielectric)
- Textures (solid color, 3D checker, Perlin marble, image)
- Depth of field and motion blur

Subpackages:
    core: Vector algebra, rays, random streams, integrator and rendering loop
    textures: Perlin noise and texture evaluation
    materials: Scattering models
    geometry: Sphere primitives and intersection
    camera: Thin-lens camera model
    scene: World aggregate, scene manager and demo scenes
    output: Image export and preview

Taichi fields are declared when the subpackages are imported, so call
``ti.init`` before importing anything below this package.
"""

__version__ = "0.1.0"
