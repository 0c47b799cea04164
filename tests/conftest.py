"""Pytest configuration for sphere tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Every field created
    by the package is allocated after this point.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def one_sphere_builder():
    """Builder for the single red sphere scene.

    One diffuse sphere at (0, 0, -5) with radius 1 and a white light at
    (0, 5, -5).
    """
    from spheretrace.scene.builder import SceneBuilder

    builder = SceneBuilder()
    builder.add_sphere(
        (0.0, 0.0, -5.0),
        1.0,
        diffuse=(1.0, 0.0, 0.0),
        specular=(0.0, 0.0, 0.0),
        shininess=32.0,
    )
    builder.add_light((0.0, 5.0, -5.0), (1.0, 1.0, 1.0))
    return builder


@pytest.fixture
def facing_mirrors_builder():
    """Builder for two mirrors facing each other along the z axis.

    A ray from the origin toward -z bounces between them until the bounce
    limit stops it. No lights, so only reflection bookkeeping matters.
    """
    from spheretrace.scene.builder import SceneBuilder

    builder = SceneBuilder()
    builder.add_sphere((0.0, 0.0, -5.0), 1.0, diffuse=(0.0, 0.0, 0.0), specular=(0.8, 0.8, 0.8))
    builder.add_sphere((0.0, 0.0, 5.0), 1.0, diffuse=(0.0, 0.0, 0.0), specular=(0.5, 0.5, 0.5))
    return builder
