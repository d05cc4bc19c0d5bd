"""
Unit tests for WorkloadSpec -> CreateContainerGroup translation
"""
import base64
import json
from datetime import datetime, timezone

import pytest

from core.errors import (
    MissingResourceError,
    TranslationError,
    UnsupportedCredentialError,
    UnsupportedVolumeError,
)
from core.kubernetes import StaticResourceManager
from models.eci import VOL_TYPE_CONFIGFILEVOLUME, VOL_TYPE_EMPTYDIR, VOL_TYPE_NFS
from models.workload import SecretData, SecretType, WorkloadSpec
from services.translator import WorkloadTranslator, make_storage_type, split_image


def _translator(provider_config, secrets=None, config_maps=None) -> WorkloadTranslator:
    return WorkloadTranslator(provider_config, StaticResourceManager(secrets, config_maps))


def _workload(**fields) -> WorkloadSpec:
    data = {"namespace": "ns", "name": "web"}
    data.update(fields)
    return WorkloadSpec(**data)


class TestSplitImage:
    """Tests for split_image"""

    @pytest.mark.parametrize("image,expected", [
        ("nginx:1.21", ("nginx", "1.21")),
        ("nginx", ("nginx", "latest")),
        ("registry.io:5000/team/app:v2", ("registry.io:5000/team/app", "v2")),
        ("registry.io:5000/team/app", ("registry.io:5000/team/app", "latest")),
        ("nginx:", ("nginx", "latest")),
    ])
    def test_split(self, image, expected):
        assert split_image(image) == expected


class TestContainers:
    """Tests for container conversion"""

    def test_create_scenario(self, provider_config, sample_workload):
        request = _translator(provider_config).to_create_request(WorkloadSpec(**sample_workload))

        container = request.container[0]
        assert container.image == "nginx"
        assert container.version == "1.21"
        assert container.cpu == 0.5
        assert container.memory == pytest.approx(0.25)
        assert container.ports[0].port == 80
        assert container.environment_var[0].key == "MODE"
        assert request.cpu == 0.5
        assert request.memory == pytest.approx(0.25)

    def test_request_fields(self, provider_config, sample_workload):
        request = _translator(provider_config).to_create_request(WorkloadSpec(**sample_workload))

        assert request.name == "ns-web"
        assert request.pod_name == "web"
        assert request.namespace == "ns"
        assert request.site_id == "site-1"
        assert request.cluster_id == "cluster-1"
        assert request.node_id == "node-1"
        assert request.private_pipe_id == "pipe-1"
        assert request.owner_references == {"kind": "ReplicaSet", "name": "web-5d8f"}
        assert request.creation_timestamp == "2024-01-02T03-04-05Z"

    def test_default_resources(self, provider_config):
        workload = _workload(
            containers=[{"name": "app", "image": "busybox"}],
            init_containers=[{"name": "init", "image": "busybox"}],
        )
        request = _translator(provider_config).to_create_request(workload)

        assert request.container[0].cpu == 1.0
        assert request.container[0].memory == 2.0
        assert request.init_container[0].cpu == 0.0
        assert request.init_container[0].memory == 0.0
        assert request.cpu == 1.0
        assert request.memory == 2.0

    def test_zero_containers(self, provider_config):
        request = _translator(provider_config).to_create_request(_workload())
        assert request.cpu == 0.0
        assert request.memory == 0.0
        assert request.container == []

    def test_requests_used_without_limits(self, provider_config):
        workload = _workload(containers=[{
            "name": "app",
            "image": "busybox",
            "resources": {"requests": {"cpu": "2", "memory": "1Gi"}},
        }])
        container = _translator(provider_config).to_create_request(workload).container[0]
        assert container.cpu == 2.0
        assert container.memory == 1.0

    def test_limits_take_precedence(self, provider_config):
        workload = _workload(containers=[{
            "name": "app",
            "image": "busybox",
            "resources": {"limits": {"cpu": "250m"}, "requests": {"cpu": "100m"}},
        }])
        container = _translator(provider_config).to_create_request(workload).container[0]
        assert container.cpu == 0.25
        assert container.memory == 2.0

    def test_totals_include_init_containers(self, provider_config):
        workload = _workload(
            containers=[
                {"name": "a", "image": "x", "resources": {"limits": {"cpu": "1", "memory": "1Gi"}}},
                {"name": "b", "image": "x", "resources": {"limits": {"cpu": "500m", "memory": "512Mi"}}},
            ],
            init_containers=[
                {"name": "i", "image": "x", "resources": {"limits": {"cpu": "500m", "memory": "512Mi"}}},
            ],
        )
        request = _translator(provider_config).to_create_request(workload)
        assert request.cpu == 2.0
        assert request.memory == 2.0

    def test_command_and_args_concatenated(self, provider_config):
        workload = _workload(containers=[{
            "name": "app",
            "image": "busybox",
            "command": ["sh", "-c"],
            "args": ["echo hi"],
        }])
        container = _translator(provider_config).to_create_request(workload).container[0]
        assert container.command == ["sh", "-c", "echo hi"]
        assert container.arg == []

    def test_invalid_quantity(self, provider_config):
        workload = _workload(containers=[{
            "name": "app",
            "image": "busybox",
            "resources": {"limits": {"cpu": "lots"}},
        }])
        with pytest.raises(TranslationError):
            _translator(provider_config).to_create_request(workload)

    def test_aware_timestamp_converted_to_utc(self, provider_config):
        workload = _workload(creation_timestamp=datetime(2024, 1, 2, 12, 0, 0, tzinfo=timezone.utc))
        request = _translator(provider_config).to_create_request(workload)
        assert request.creation_timestamp == "2024-01-02T12-00-00Z"


class TestVolumes:
    """Tests for volume conversion"""

    def test_empty_dir_and_nfs(self, provider_config):
        workload = _workload(volumes=[
            {"name": "cache", "empty_dir": {}},
            {"name": "share", "nfs": {"server": "10.0.0.2", "path": "/export", "read_only": True}},
        ])
        volumes = _translator(provider_config).get_volumes(workload)

        assert volumes[0].type == VOL_TYPE_EMPTYDIR
        assert volumes[0].empty_dir_volume_enable is True
        assert volumes[1].type == VOL_TYPE_NFS
        assert volumes[1].nfs_volume_server == "10.0.0.2"
        assert volumes[1].nfs_volume_path == "/export"
        assert volumes[1].nfs_volume_read_only is True

    def test_config_map_content_verbatim(self, provider_config):
        translator = _translator(provider_config, config_maps={
            ("ns", "app-config"): {"b.conf": "b=2", "a.conf": "a=1"},
        })
        workload = _workload(volumes=[{"name": "cfg", "config_map": {"name": "app-config"}}])

        volume = translator.get_volumes(workload)[0]

        assert volume.type == VOL_TYPE_CONFIGFILEVOLUME
        assert [(f.path, f.content) for f in volume.config_file_to_paths] == [
            ("a.conf", "a=1"),
            ("b.conf", "b=2"),
        ]

    def test_config_map_base64_option(self, provider_config):
        config = provider_config.model_copy(update={"config_file_base64": True})
        translator = _translator(config, config_maps={("ns", "app-config"): {"a.conf": "a=1"}})
        workload = _workload(volumes=[{"name": "cfg", "config_map": {"name": "app-config"}}])

        volume = translator.get_volumes(workload)[0]
        assert volume.config_file_to_paths[0].content == base64.b64encode(b"a=1").decode("ascii")

    def test_secret_content_decoded(self, provider_config):
        translator = _translator(provider_config, secrets={
            ("ns", "creds"): SecretData(name="creds", data={"password": b"hunter2"}),
        })
        workload = _workload(volumes=[{"name": "sec", "secret": {"secret_name": "creds"}}])

        volume = translator.get_volumes(workload)[0]
        assert volume.config_file_to_paths[0].path == "password"
        assert volume.config_file_to_paths[0].content == "hunter2"

    def test_missing_required_config_map(self, provider_config):
        workload = _workload(volumes=[{"name": "cfg", "config_map": {"name": "absent", "optional": False}}])

        with pytest.raises(MissingResourceError) as exc_info:
            _translator(provider_config).get_volumes(workload)

        assert exc_info.value.kind == "ConfigMap"
        assert str(exc_info.value) == "ConfigMap absent is required by Pod web and does not exist"

    def test_missing_required_secret(self, provider_config):
        workload = _workload(volumes=[{"name": "sec", "secret": {"secret_name": "absent", "optional": False}}])

        with pytest.raises(MissingResourceError) as exc_info:
            _translator(provider_config).get_volumes(workload)

        assert exc_info.value.kind == "Secret"
        assert str(exc_info.value) == "Secret absent is required by Pod web and does not exist"

    def test_binary_secret_rejected(self, provider_config):
        secrets = {("ns", "certs"): SecretData(name="certs", data={"key.der": b"\xff\xfe\x00"})}
        workload = _workload(volumes=[{"name": "sec", "secret": {"secret_name": "certs"}}])

        with pytest.raises(TranslationError) as exc_info:
            _translator(provider_config, secrets=secrets).get_volumes(workload)
        assert "key.der" in str(exc_info.value)

        # base64 옵션이면 바이너리도 그대로 전달
        config = provider_config.model_copy(update={"config_file_base64": True})
        volume = _translator(config, secrets=secrets).get_volumes(workload)[0]
        assert volume.config_file_to_paths[0].content == base64.b64encode(b"\xff\xfe\x00").decode("ascii")

    def test_missing_optional_skipped(self, provider_config):
        workload = _workload(volumes=[
            {"name": "cfg", "config_map": {"name": "absent", "optional": True}},
            {"name": "sec", "secret": {"secret_name": "absent"}},
        ])
        assert _translator(provider_config).get_volumes(workload) == []

    def test_unsupported_volume(self, provider_config):
        workload = _workload(volumes=[{"name": "host"}])

        with pytest.raises(UnsupportedVolumeError) as exc_info:
            _translator(provider_config).get_volumes(workload)

        assert exc_info.value.volume == "host"
        assert "host" in str(exc_info.value)
        assert "web" in str(exc_info.value)

    def test_two_sources_unsupported(self, provider_config):
        workload = _workload(volumes=[{"name": "mixed", "empty_dir": {}, "secret": {"secret_name": "s"}}])
        with pytest.raises(UnsupportedVolumeError):
            _translator(provider_config).get_volumes(workload)


class TestImagePullSecrets:
    """Tests for image registry credentials"""

    def test_dockercfg(self, provider_config):
        data = {".dockercfg": json.dumps({"registry.io": {"username": "u", "password": "p"}}).encode()}
        translator = _translator(provider_config, secrets={
            ("ns", "pull"): SecretData(name="pull", type=SecretType.DOCKERCFG, data=data),
        })
        credentials = translator.get_image_pull_secrets(_workload(image_pull_secrets=["pull"]))

        assert len(credentials) == 1
        assert credentials[0].server == "registry.io"
        assert credentials[0].user_name == "u"
        assert credentials[0].password == "p"

    def test_dockerconfigjson_with_auth_only(self, provider_config):
        auth = base64.b64encode(b"robot:s3cret").decode()
        data = {".dockerconfigjson": json.dumps({"auths": {"hub.io": {"auth": auth}}}).encode()}
        translator = _translator(provider_config, secrets={
            ("ns", "pull"): SecretData(name="pull", type=SecretType.DOCKER_CONFIG_JSON, data=data),
        })
        credentials = translator.get_image_pull_secrets(_workload(image_pull_secrets=["pull"]))

        assert credentials[0].server == "hub.io"
        assert credentials[0].user_name == "robot"
        assert credentials[0].password == "s3cret"

    def test_unsupported_secret_type(self, provider_config):
        translator = _translator(provider_config, secrets={
            ("ns", "pull"): SecretData(name="pull", type=SecretType.OPAQUE, raw_type="Opaque"),
        })
        with pytest.raises(UnsupportedCredentialError):
            translator.get_image_pull_secrets(_workload(image_pull_secrets=["pull"]))

    def test_missing_key(self, provider_config):
        translator = _translator(provider_config, secrets={
            ("ns", "pull"): SecretData(name="pull", type=SecretType.DOCKERCFG, data={}),
        })
        with pytest.raises(TranslationError):
            translator.get_image_pull_secrets(_workload(image_pull_secrets=["pull"]))

    def test_missing_secret(self, provider_config):
        with pytest.raises(MissingResourceError):
            _translator(provider_config).get_image_pull_secrets(_workload(image_pull_secrets=["absent"]))


class TestStorage:
    """Tests for ephemeral storage annotations"""

    def test_defaults(self):
        assert make_storage_type(_workload()) == ("high_disk", 20)

    def test_annotations(self):
        workload = _workload(annotations={"eci-storage-type": "ssd", "eci-storage-size": "50"})
        assert make_storage_type(workload) == ("ssd", 50)

    def test_invalid_size(self):
        workload = _workload(annotations={"eci-storage-size": "big"})
        assert make_storage_type(workload) == ("high_disk", 20)
