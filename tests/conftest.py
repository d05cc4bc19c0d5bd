"""
Pytest configuration and fixtures
"""
import json
import os
import sys
from typing import AsyncGenerator, Callable, Dict, Generator, List, Optional

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from core.config import ProviderConfig
from core.kubernetes import StaticResourceManager
from services.cdsapi import OpenApiClient
from services.provider import ECIProvider


# ============================================
# Fake ECI backend
# ============================================

class FakeEciBackend:
    """Action 파라미터로 라우팅하는 가짜 OpenAPI 서버"""

    def __init__(self):
        self.groups: List[dict] = []
        self.requests: List[httpx.Request] = []
        self.create_code = "Success"
        self.delete_code = "Success"
        self.delete_status = 200
        self.describe_status = 200
        self.describe_code = "Success"
        self.status_sequence: List[int] = []

    @property
    def actions(self) -> List[str]:
        return [r.url.params.get("Action") for r in self.requests]

    def bodies(self, action: str) -> List[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.params.get("Action") == action
        ]

    def add_group(self, namespace: str, name: str, **fields) -> dict:
        group = {
            "container_group_id": fields.pop("container_group_id", f"eci-{len(self.groups) + 1}"),
            "container_group_name": f"{namespace}-{name}",
            "pod_name": name,
            "namespace": namespace,
            "cpu": 1.0,
            "memory": 2.0,
            "intranet_ip": "10.0.0.8",
            "status": "Running",
            "creation_time": "2024-01-02T03-04-05Z",
            "containers": [
                {
                    "id": "c-1",
                    "name": "web",
                    "image": "nginx",
                    "version": "1.21",
                    "cpu": 1.0,
                    "memory": 2.0,
                    "restart_count": 0,
                    "current_state": {
                        "state": "Running",
                        "detail_status": "",
                        "exit_code": 0,
                        "start_time": "2024-01-02T03:05:00Z",
                        "finish_time": "",
                    },
                }
            ],
        }
        group.update(fields)
        self.groups.append(group)
        return group

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_sequence:
            status = self.status_sequence.pop(0)
            if status >= 500:
                return httpx.Response(status, text="bad gateway")

        action = request.url.params.get("Action")
        body = json.loads(request.content) if request.content else {}

        if action == "CreateContainerGroup":
            return httpx.Response(200, json={"Code": self.create_code, "Message": "", "Data": {}})

        if action == "DeleteContainerGroup":
            if self.delete_status >= 400:
                return httpx.Response(self.delete_status, json={"Code": "NotFound", "Message": "gone"})
            return httpx.Response(200, json={"Code": self.delete_code, "Message": "", "Data": None})

        if action == "DescribeContainerGroups":
            if self.describe_status >= 400:
                return httpx.Response(self.describe_status, text="unavailable")
            if self.describe_code != "Success":
                return httpx.Response(200, json={"Code": self.describe_code, "Message": "busy", "Data": None})
            name = body.get("container_group_name")
            namespace = body.get("namespace")
            groups = [
                g for g in self.groups
                if (not name or g["container_group_name"] == name)
                and (not namespace or g["namespace"] == namespace)
            ]
            return httpx.Response(200, json={"Code": "Success", "Message": "", "Data": {"eci": groups}})

        return httpx.Response(400, json={"Code": "UnknownAction", "Message": action})


# ============================================
# Config / client fixtures
# ============================================

@pytest.fixture
def provider_config() -> ProviderConfig:
    """Fake credentials, no backoff and no jitter"""
    return ProviderConfig(
        access_key_id="test-ak",
        access_key_secret="test-secret",
        api_host="https://cdsapi.example.com",
        site_id="site-1",
        cluster_id="cluster-1",
        node_id="node-1",
        node_name="cds-virtual-node",
        private_id="pipe-1",
        max_pods="50",
        retry_backoff=0,
        describe_staggered_ms=0,
        internal_ip="10.1.1.1",
    )


@pytest.fixture
def resource_manager() -> StaticResourceManager:
    return StaticResourceManager()


@pytest.fixture
def make_api_client(provider_config) -> Callable[..., OpenApiClient]:
    """MockTransport handler 로 OpenApiClient 생성"""
    def factory(handler, config: Optional[ProviderConfig] = None) -> OpenApiClient:
        transport = httpx.MockTransport(handler)
        return OpenApiClient(config or provider_config, http_client=httpx.AsyncClient(transport=transport))
    return factory


@pytest.fixture
def backend() -> FakeEciBackend:
    return FakeEciBackend()


@pytest.fixture
def provider(provider_config, resource_manager, backend, make_api_client) -> ECIProvider:
    return ECIProvider(provider_config, make_api_client(backend.handler), resource_manager)


# ============================================
# App Fixtures
# ============================================

@pytest.fixture
def client(provider) -> Generator:
    """Synchronous test client"""
    from main import create_app
    with TestClient(create_app(provider=provider)) as c:
        yield c


@pytest.fixture
async def async_client(provider) -> AsyncGenerator:
    """Asynchronous test client (lifespan 없이 provider 직접 주입)"""
    from main import create_app
    app = create_app(provider=provider)
    app.state.provider = provider
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================
# Data Fixtures
# ============================================

@pytest.fixture
def sample_workload() -> Dict:
    """Sample workload spec"""
    return {
        "namespace": "ns",
        "name": "web",
        "creation_timestamp": "2024-01-02T03:04:05Z",
        "owner_references": [{"kind": "ReplicaSet", "name": "web-5d8f"}],
        "restart_policy": "Always",
        "containers": [
            {
                "name": "web",
                "image": "nginx:1.21",
                "resources": {"limits": {"cpu": "500m", "memory": "256Mi"}},
                "ports": [{"container_port": 80, "protocol": "TCP"}],
                "env": [{"name": "MODE", "value": "prod"}],
            }
        ],
    }
