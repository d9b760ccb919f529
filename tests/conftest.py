"""Pytest configuration for raykernel tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session before the batch
tracer allocates its fields.
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


@pytest.fixture
def scene():
    """Create a fresh, empty Scene for each test."""
    from raykernel.scene.manager import Scene

    return Scene()


@pytest.fixture
def down_z():
    """Ray from z = 5 looking down the -z axis."""
    from raykernel.core.ray import Ray

    return Ray((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
