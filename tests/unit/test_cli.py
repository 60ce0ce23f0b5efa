"""CLI tests using click's CliRunner."""
from __future__ import annotations

import errno
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from dnsname.cli import cli

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def runtime_dir(tmp_path: Path, monkeypatch) -> Path:
    run = tmp_path / "run"
    monkeypatch.setenv("DNSNAME_RUNTIME_DIR", str(run))
    monkeypatch.setenv("DNSNAME_LOCK_TIMEOUT", "1")
    monkeypatch.delenv("DNSNAME_LOG_LEVEL", raising=False)
    return run


@pytest.fixture()
def externals():
    with patch("dnsname.plugin.DnsmasqService") as service_cls, patch(
        "dnsname.plugin.FirewallManager"
    ) as firewall_cls:
        service_cls.return_value.is_running.return_value = False
        yield service_cls.return_value, firewall_cls.return_value


def test_help():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("add", "remove", "list", "check", "render-config"):
        assert command in result.output


def test_add_list_remove(runtime_dir: Path, externals):
    runner = CliRunner()

    added = runner.invoke(cli, ["add", "cni0", "pod-a", "--ip", "10.88.0.2/16", "--alias", "web"])
    assert added.exit_code == 0, added.output
    assert (runtime_dir / "cni0" / "addnhosts").read_text() == "10.88.0.2\tpod-a\tweb\n"

    listed = runner.invoke(cli, ["list", "cni0"])
    assert listed.exit_code == 0
    assert "pod-a" in listed.output
    assert "10.88.0.2" in listed.output

    removed = runner.invoke(cli, ["remove", "cni0", "pod-a"])
    assert removed.exit_code == 0, removed.output
    assert "Removed pod-a" in removed.output
    assert (runtime_dir / "cni0" / "addnhosts").read_text() == ""


def test_add_duplicate_fails(runtime_dir: Path, externals):
    runner = CliRunner()
    runner.invoke(cli, ["add", "cni0", "pod-a", "--ip", "10.88.0.2"])

    result = runner.invoke(cli, ["add", "cni0", "pod-b", "--ip", "10.88.0.3", "--alias", "pod-a"])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_add_os_error_fails_cleanly(runtime_dir: Path, externals):
    denied = PermissionError(errno.EACCES, "Permission denied", str(runtime_dir / "cni0" / "addnhosts"))
    with patch("dnsname.plugin.HostsFile.append", side_effect=denied):
        result = CliRunner().invoke(cli, ["add", "cni0", "pod-a", "--ip", "10.88.0.2"])

    assert result.exit_code == 1
    assert "PermissionError" in result.output
    assert not isinstance(result.exception, PermissionError)


def test_remove_with_service_down_does_not_claim_reload(runtime_dir: Path, externals):
    runner = CliRunner()
    runner.invoke(cli, ["add", "cni0", "pod-a", "--ip", "10.88.0.2"])
    runner.invoke(cli, ["add", "cni0", "pod-b", "--ip", "10.88.0.3"])

    result = runner.invoke(cli, ["remove", "cni0", "pod-a"])

    assert result.exit_code == 0, result.output
    assert "Removed pod-a" in result.output
    assert "not running" in result.output
    assert "dnsmasq reloaded" not in result.output


def test_remove_reports_reload(runtime_dir: Path, externals):
    service, _ = externals
    runner = CliRunner()
    runner.invoke(cli, ["add", "cni0", "pod-a", "--ip", "10.88.0.2"])
    runner.invoke(cli, ["add", "cni0", "pod-b", "--ip", "10.88.0.3"])
    service.is_running.return_value = True

    result = runner.invoke(cli, ["remove", "cni0", "pod-a"])

    assert result.exit_code == 0, result.output
    assert "dnsmasq reloaded" in result.output
    service.reload.assert_called()


def test_remove_unknown_name_warns(runtime_dir: Path, externals):
    runner = CliRunner()
    runner.invoke(cli, ["add", "cni0", "pod-a", "--ip", "10.88.0.2"])

    result = runner.invoke(cli, ["remove", "cni0", "pod-z"])

    assert result.exit_code == 0
    assert "never found" in result.output


def test_list_empty(runtime_dir: Path):
    result = CliRunner().invoke(cli, ["list", "cni0"])
    assert result.exit_code == 0
    assert "No records" in result.output


def test_render_config(runtime_dir: Path):
    result = CliRunner().invoke(cli, ["render-config", "cni0", "--domain", "foobar.org"])

    assert result.exit_code == 0
    assert "domain=foobar.org" in result.output
    assert f"addn-hosts={runtime_dir / 'cni0' / 'addnhosts'}" in result.output
    assert not (runtime_dir / "cni0").exists()


def test_check_failure_exit_code(runtime_dir: Path, externals):
    with patch("dnsname.plugin.interface_exists", return_value=False):
        result = CliRunner().invoke(cli, ["check", "cni0"])
    assert result.exit_code == 1


def test_invalid_settings(runtime_dir: Path, monkeypatch):
    monkeypatch.setenv("DNSNAME_LOG_LEVEL", "LOUD")
    result = CliRunner().invoke(cli, ["list", "cni0"])
    assert result.exit_code == 1
    assert "Invalid log level" in result.output
