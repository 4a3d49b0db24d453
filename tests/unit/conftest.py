"""Unit test fixtures: orchestrator and teardown wired to the fake cloud."""

from __future__ import annotations

import pytest

from filestack.deploy.orchestrator import DeploymentOrchestrator
from filestack.deploy.teardown import TeardownCoordinator
from filestack.models.inputs import DeploymentConfig
from tests.fakes import FakeCloud, MemoryDeploymentLock, MemoryStateStore, create_memory_registry

DEPLOYMENT_ID = "files-test"


@pytest.fixture
def cloud():
    return FakeCloud(region="us-east-1")


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def lock():
    return MemoryDeploymentLock(blocking_timeout=1.0)


@pytest.fixture
def orchestrator(cloud, store, lock):
    return DeploymentOrchestrator(
        adapters=create_memory_registry(cloud),
        state_store=store,
        lock=lock,
        deployment_id=DEPLOYMENT_ID,
    )


@pytest.fixture
def coordinator(cloud, store, lock):
    return TeardownCoordinator(
        adapters=create_memory_registry(cloud),
        state_store=store,
        lock=lock,
        deployment_id=DEPLOYMENT_ID,
    )


@pytest.fixture
def config():
    return DeploymentConfig.model_validate({
        "region": "us-east-1",
        "bucketName": "files-prod",
        "apiOptions": {"minUploadSize": 0, "maxUploadSize": 10485760},
    })
