"""Tests for the CLI's exit codes and output."""

from __future__ import annotations

import json

import pytest

import filestack.deploy as deploy_module
from filestack import cli
from filestack.core.exceptions import ExitCode
from tests.fakes import FakeCloud, create_memory_registry


@pytest.fixture
def cloud(monkeypatch, tmp_path):
    fake = FakeCloud()
    monkeypatch.setattr(deploy_module, "create_adapter_registry",
                        lambda settings, region=None: create_memory_registry(fake))
    monkeypatch.setenv("FILESTACK_STATE_BACKEND", "file")
    monkeypatch.setenv("FILESTACK_STATE_PATH", str(tmp_path / "state"))
    monkeypatch.setenv("FILESTACK_DEPLOYMENT_ID", "files-cli")
    monkeypatch.setenv("FILESTACK_LOG_JSON", "false")
    return fake


def _write_config(tmp_path, **api):
    path = tmp_path / "files.json"
    path.write_text(json.dumps({
        "region": "us-east-1",
        "bucketName": "files-prod",
        "apiOptions": {"minUploadSize": 0, "maxUploadSize": 10485760, **api},
    }))
    return str(path)


def test_deploy_prints_result_and_exits_zero(cloud, tmp_path, capsys):
    code = cli.main(["deploy", "--config", _write_config(tmp_path)])

    assert code == ExitCode.OK
    out = json.loads(capsys.readouterr().out)
    assert out["storage"]["name"] == "files-prod"
    assert out["derived_routing_rules"] == [{"path_pattern": "/files/*", "ttl": 2592000}]


def test_invalid_config_exits_with_validation_code(cloud, tmp_path):
    code = cli.main(["deploy", "--config", _write_config(tmp_path, minUploadSize=5, maxUploadSize=1)])
    assert code == ExitCode.INVALID
    assert cloud.calls == []


def test_unreadable_config_exits_with_validation_code(cloud, tmp_path):
    assert cli.main(["deploy", "--config", str(tmp_path / "missing.json")]) == ExitCode.INVALID


def test_provisioning_failure_exit_code(cloud, tmp_path):
    cloud.fail("apply", "download-files")
    assert cli.main(["deploy", "--config", _write_config(tmp_path)]) == ExitCode.PROVISIONING


def test_teardown_then_state(cloud, tmp_path, capsys):
    cli.main(["deploy", "--config", _write_config(tmp_path)])
    capsys.readouterr()

    assert cli.main(["teardown"]) == ExitCode.OK
    report = json.loads(capsys.readouterr().out)
    assert [o["resource"] for o in report["outcomes"] if o["status"] == "skipped"] == ["storage"]

    assert cli.main(["state"]) == ExitCode.OK
    state = json.loads(capsys.readouterr().out)
    assert list(state["resources"]) == ["storage"]


def test_teardown_failure_exit_code(cloud, tmp_path):
    cli.main(["deploy", "--config", _write_config(tmp_path)])
    cloud.fail("remove", "api-gateway")
    assert cli.main(["teardown"]) == ExitCode.TEARDOWN
