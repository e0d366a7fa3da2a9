"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene, material and texture registries around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any field is touched
    from src.lightpath.camera.thin_lens import reset_camera
    from src.lightpath.materials.dielectric import clear_dielectric_materials
    from src.lightpath.materials.diffuse_light import clear_diffuse_light_materials
    from src.lightpath.materials.isotropic import clear_isotropic_materials
    from src.lightpath.materials.lambertian import clear_lambertian_materials
    from src.lightpath.materials.material import clear_material_tracking
    from src.lightpath.materials.metal import clear_metal_materials
    from src.lightpath.materials.textures import clear_textures
    from src.lightpath.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_textures()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_diffuse_light_materials()
        clear_isotropic_materials()
        clear_material_tracking()
        reset_camera()

    _clear_all()
    yield
    _clear_all()
