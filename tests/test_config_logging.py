"""Unit tests for intersection settings, errors and logging setup.

Tests cover:
- IntersectionConfig defaults, validation and overrides
- Error class hierarchy
- setup_logging() handler installation
"""

import logging

import pytest

from raykernel.core.config import DEFAULT_CONFIG, IntersectionConfig, resolve_config
from raykernel.errors import (
    ConstructionError,
    LookupMiss,
    NumericNonConvergence,
    RayKernelError,
)
from raykernel.logging_config import setup_logging


class TestIntersectionConfig:
    """Tests for IntersectionConfig."""

    def test_defaults(self):
        """Test the documented default tolerances."""
        config = IntersectionConfig()
        assert config.epsilon == pytest.approx(1e-4)
        assert config.t_max == pytest.approx(1e7)
        assert config.root_samples == 32
        assert config.root_max_iterations == 64

    def test_resolve_none_gives_default(self):
        assert resolve_config(None) is DEFAULT_CONFIG
        custom = IntersectionConfig(epsilon=1e-3)
        assert resolve_config(custom) is custom

    def test_with_overrides_returns_copy(self):
        """Test overriding fields leaves the original untouched."""
        fine = DEFAULT_CONFIG.with_overrides(root_samples=128)
        assert fine.root_samples == 128
        assert DEFAULT_CONFIG.root_samples == 32

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"epsilon": -1.0},
            {"epsilon": 1.0, "t_max": 0.5},
            {"root_samples": 0},
            {"root_max_iterations": 0},
            {"root_tolerance": 0.0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConstructionError):
            IntersectionConfig(**kwargs)


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(ConstructionError, RayKernelError)
        assert issubclass(ConstructionError, ValueError)
        assert issubclass(NumericNonConvergence, ArithmeticError)
        assert issubclass(LookupMiss, KeyError)

    def test_lookup_miss_message(self):
        """Test LookupMiss keeps its kind and name and a readable message."""
        err = LookupMiss("camera", "main")
        assert err.kind == "camera"
        assert err.name == "main"
        assert str(err) == "No camera registered under 'main'"


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("raykernel")
        handlers = list(logger.handlers)
        level = logger.level
        yield
        logger.handlers = handlers
        logger.setLevel(level)

    def test_sets_level(self):
        logger = setup_logging("DEBUG")
        assert logger.name == "raykernel"
        assert logger.level == logging.DEBUG

    def test_does_not_duplicate_handlers(self):
        """Test calling setup twice installs one console handler."""
        setup_logging("INFO")
        logger = setup_logging("WARNING")
        consoles = [h for h in logger.handlers if getattr(h, "_raykernel_console", False)]
        assert len(consoles) == 1
        assert consoles[0].level == logging.WARNING

    def test_unknown_level_falls_back_to_warning(self):
        logger = setup_logging("chatty")
        assert logger.level == logging.WARNING

    def test_package_has_null_handler(self):
        """Test importing the package installs a NullHandler only."""
        import raykernel

        logger = logging.getLogger(raykernel.__name__)
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
