"""Tests for the k3sspin kubectl wrapper."""

import subprocess

import pytest

from k3sspin import kube
from k3sspin.errors import KubectlError, KubectlNotFoundError


class FakeRun:
    """Records subprocess.run calls and returns a canned result."""

    def __init__(self, returncode=0, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(
            cmd, self.returncode, stdout=self.stdout, stderr=self.stderr,
        )


@pytest.fixture
def kubectl_on_path(monkeypatch):
    monkeypatch.setattr(kube.shutil, "which", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def fake_run(monkeypatch, kubectl_on_path):
    run = FakeRun(stdout="spinapp.core.spinoperator.dev/example-app created\n")
    monkeypatch.setattr(kube.subprocess, "run", run)
    return run


class TestFindKubectl:
    def test_found(self, kubectl_on_path):
        assert kube.find_kubectl() == "/usr/bin/kubectl"

    def test_not_found(self, monkeypatch):
        monkeypatch.setattr(kube.shutil, "which", lambda name: None)
        with pytest.raises(KubectlNotFoundError):
            kube.find_kubectl()


class TestApplyManifest:
    def test_apply_pipes_manifest(self, fake_run):
        output = kube.apply_manifest("---\nkind: SpinApp\n")

        cmd, kwargs = fake_run.calls[0]
        assert cmd == ["/usr/bin/kubectl", "apply", "-f", "-"]
        assert kwargs["input"] == "---\nkind: SpinApp\n"
        assert kwargs["capture_output"] is True
        assert output == "spinapp.core.spinoperator.dev/example-app created\n"

    def test_apply_with_namespace(self, fake_run):
        kube.apply_manifest("---\n", namespace="spin")

        cmd, _ = fake_run.calls[0]
        assert cmd[-2:] == ["--namespace", "spin"]

    def test_apply_failure(self, monkeypatch, kubectl_on_path):
        monkeypatch.setattr(
            kube.subprocess, "run",
            FakeRun(returncode=1, stderr="error: no matches for kind \"SpinApp\"\n"),
        )
        with pytest.raises(KubectlError) as exc_info:
            kube.apply_manifest("---\n")
        assert exc_info.value.returncode == 1
        assert str(exc_info.value) == 'error: no matches for kind "SpinApp"'


class TestReadCommands:
    def test_get_spinapp(self, fake_run):
        kube.get_spinapp("example-app", namespace="spin")

        cmd, kwargs = fake_run.calls[0]
        assert cmd == [
            "/usr/bin/kubectl", "get", kube.SPINAPP_RESOURCE, "example-app",
            "--namespace", "spin",
        ]
        assert kwargs["capture_output"] is False

    def test_list_spinapps(self, fake_run):
        kube.list_spinapps()

        cmd, _ = fake_run.calls[0]
        assert cmd == ["/usr/bin/kubectl", "get", kube.SPINAPP_RESOURCE]

    def test_stream_logs(self, fake_run):
        kube.stream_logs("example-app", follow=True, tail=20)

        cmd, _ = fake_run.calls[0]
        assert cmd == [
            "/usr/bin/kubectl", "logs", "deployment/example-app", "--follow", "--tail=20",
        ]

    def test_uncaptured_failure_message(self, monkeypatch, kubectl_on_path):
        monkeypatch.setattr(kube.subprocess, "run", FakeRun(returncode=3))
        with pytest.raises(KubectlError) as exc_info:
            kube.list_spinapps()
        assert "exited with status 3" in str(exc_info.value)
