import os
import shutil
import socket
import subprocess

import pytest

from github2k8s.core import documents
from github2k8s.core.documents import wait_for_db_script
from github2k8s.pacts.types import EngineSpec

pytestmark = pytest.mark.skipif(shutil.which("bash") is None, reason="needs bash")


@pytest.fixture
def listener():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(16)
    yield sock.getsockname()[1]
    sock.close()


@pytest.fixture(autouse=True)
def _no_backoff(monkeypatch):
    monkeypatch.setattr(documents, "DB_INIT_BACKOFF_SECONDS", 0)


def _run_script(tmp_path, port, stub_body):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    stub = bindir / "fake-init"
    stub.write_text("#!/bin/sh\necho \"$@\" >> \"$CALLS\"\n" + stub_body)
    stub.chmod(0o755)
    engine = EngineSpec(name="fake", image="fake:1", port=port, data_path="/data",
                        init_command="fake-init {host} {port} {init_path}")
    script = wait_for_db_script(engine, "127.0.0.1")
    calls = tmp_path / "calls"
    env = dict(os.environ, PATH=f"{bindir}{os.pathsep}{os.environ.get('PATH', '')}",
               CALLS=str(calls))
    result = subprocess.run(["bash", "-c", script], env=env, capture_output=True,
                            text=True, timeout=60)
    attempts = calls.read_text().splitlines() if calls.exists() else []
    return result, attempts


def test_successful_init_runs_once(tmp_path, listener):
    result, attempts = _run_script(tmp_path, listener, "exit 0\n")
    assert result.returncode == 0
    assert attempts == [f"127.0.0.1 {listener} /docker-entrypoint-initdb.d/init.sql"]
    assert "database initialized" in result.stdout


def test_already_initialized_database_does_not_block_the_service(tmp_path, listener):
    # e.g. ERROR 1050: the image applied init.sql itself on first start
    result, attempts = _run_script(
        tmp_path, listener, "echo \"ERROR 1050 (42S01): Table 't' already exists\" >&2\nexit 1\n")
    assert result.returncode == 0
    assert len(attempts) == 5
    assert "starting anyway" in result.stderr
