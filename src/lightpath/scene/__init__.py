"""Scene module for primitive storage and scene assembly.

Components:
    objects: Host-side primitive infos and functional transforms
    intersection: Kernel-side primitive storage and group queries
    manager: SceneManager coordinating materials, the world and the lights
    cornell_box: Cornell box preset scenes

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for shape data
    - Group membership tables (world, lights, medium boundaries)

Submodules are imported directly, for example
``from src.lightpath.scene.manager import SceneManager``, because the
kernel-side storage is shared with core.pdf.
"""
