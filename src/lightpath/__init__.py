"""Monte Carlo path tracer built on Taichi.

This package renders scenes of spheres, quads and constant-density media
with light importance sampling, using Taichi kernels for parallel pixel
evaluation. It supports:
- Lambertian, metal, dielectric, diffuse-light and isotropic materials
- Solid and checker textures
- Translated and Y-rotated instances, moving spheres
- A thin-lens camera with defocus and motion blur

Subpackages:
    core: Rays, bounding boxes, sampling densities and the integrator
    geometry: Shape primitives, instance transforms and media
    materials: Textures and material models
    scene: Primitive storage, the scene manager and preset scenes
    camera: Thin-lens camera with stratified ray generation
    preview: Image encoding and export
"""

__version__ = "0.1.0"
