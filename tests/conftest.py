import pytest

from kubeunits.clients import InMemoryOrchestratorClient
from kubeunits.config import KubeunitsConfig
from kubeunits.controller import LifecycleController
from kubeunits.schemas import UnitDescriptor


@pytest.fixture
def test_config():
    return KubeunitsConfig(
        owner_id="peer0",
        namespace="units",
        kubernetes_enabled=True,
        registry_namespace="hyperledger",
        registry_prefix="cc",
    )


@pytest.fixture
def unit():
    return UnitDescriptor("mycc", "1.0")


@pytest.fixture
def client():
    return InMemoryOrchestratorClient(namespace="units")


@pytest.fixture
def controller(client, test_config):
    return LifecycleController(
        client,
        owner_id="peer0",
        namespace="units",
        config=test_config,
    )
