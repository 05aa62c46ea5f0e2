"""Tests for the resource spec builder."""

import pytest

from kubeunits.config import KubeunitsConfig
from kubeunits.errors import ConfigurationError
from kubeunits.resources import build_resource_spec, get_resource_quantity


class TestBuildResourceSpec:
    """Tests for build_resource_spec."""

    def test_unset_keys_produce_empty_spec(self):
        spec = build_resource_spec(KubeunitsConfig())

        assert spec.limits == {}
        assert spec.requests == {}
        assert spec.is_empty()

    def test_all_keys(self):
        config = KubeunitsConfig(
            limits_cpu="1",
            limits_memory="512Mi",
            requests_cpu="500m",
            requests_memory="256Mi",
        )

        spec = build_resource_spec(config)

        assert spec.limits == {"cpu": "1", "memory": "512Mi"}
        assert spec.requests == {"cpu": "500m", "memory": "256Mi"}

    def test_absent_kind_is_omitted_not_zeroed(self):
        spec = build_resource_spec(KubeunitsConfig(limits_memory="1Gi"))

        assert spec.limits == {"memory": "1Gi"}
        assert "cpu" not in spec.limits
        assert spec.requests == {}

    def test_accepts_plain_dict(self):
        spec = build_resource_spec({"vm.kubernetes.container.requests.cpu": "250m"})
        assert spec.requests == {"cpu": "250m"}

    def test_malformed_quantity_names_key(self):
        config = KubeunitsConfig(requests_memory="lots")

        with pytest.raises(ConfigurationError) as exc_info:
            build_resource_spec(config)

        assert exc_info.value.key == "vm.kubernetes.container.requests.memory"
        assert "vm.kubernetes.container.requests.memory" in str(exc_info.value)

    def test_first_failure_wins(self):
        config = KubeunitsConfig(limits_cpu="??", requests_cpu="also bad")

        with pytest.raises(ConfigurationError) as exc_info:
            build_resource_spec(config)

        assert exc_info.value.key == "vm.kubernetes.container.limits.cpu"


class TestGetResourceQuantity:
    """Tests for get_resource_quantity."""

    def test_empty_string_is_unset(self):
        assert get_resource_quantity({"k": ""}, "k") is None

    def test_numbers_are_stringified(self):
        assert get_resource_quantity({"k": 2}, "k") == "2"
