"""Tests for kubeunits error classes.

Tests cover:
- Error hierarchy
- Attributes carried by each error kind
"""

import pytest

from kubeunits.errors import (
    ConfigurationError,
    KubeunitsError,
    NotFoundError,
    OrchestratorError,
    PackagingError,
)


class TestHierarchy:
    """All kubeunits errors share a base class."""

    @pytest.mark.parametrize(
        "error_cls",
        [ConfigurationError, NotFoundError, OrchestratorError, PackagingError],
    )
    def test_is_kubeunits_error(self, error_cls):
        assert issubclass(error_cls, KubeunitsError)
        assert issubclass(error_cls, Exception)


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_names_key(self):
        error = ConfigurationError("bad quantity", key="vm.kubernetes.container.limits.cpu")
        assert error.key == "vm.kubernetes.container.limits.cpu"
        assert str(error) == "bad quantity"

    def test_key_is_optional(self):
        assert ConfigurationError("empty file").key is None


class TestNotFoundError:
    """Tests for NotFoundError."""

    def test_default_message(self):
        error = NotFoundError("cc-peer0-mycc-1.0")
        assert error.name == "cc-peer0-mycc-1.0"
        assert str(error) == "cc-peer0-mycc-1.0 not found"


class TestOrchestratorError:
    """Tests for OrchestratorError."""

    def test_not_found_status(self):
        error = OrchestratorError("gone", status=404, reason="NotFound")
        assert error.is_not_found
        assert not error.is_conflict
        assert error.reason == "NotFound"

    def test_conflict_status(self):
        error = OrchestratorError("exists", status=409)
        assert error.is_conflict
        assert not error.is_not_found

    def test_no_status(self):
        error = OrchestratorError("connection reset")
        assert error.status is None
        assert not error.is_not_found
