import pytest

from github2k8s.core.ports import find_exposed_port, resolve_port

BASE = "FROM python:3.12-slim\nWORKDIR /app\nCOPY . .\n"


def test_no_expose_defaults_to_80():
    assert find_exposed_port(BASE) is None
    assert resolve_port(BASE) == 80


def test_single_expose():
    assert resolve_port(BASE + "EXPOSE 9090\nCMD [\"python\", \"app.py\"]\n") == 9090


def test_multiple_expose_takes_the_first_directive():
    text = BASE + "EXPOSE 3000\nEXPOSE 4000\n"
    assert resolve_port(text) == 3000


@pytest.mark.parametrize("line,port", [
    ("expose 5000", 5000),
    ("  Expose 8000", 8000),
    ("EXPOSE 8080/tcp 9090", 8080),
    ("EXPOSE 53/udp", 53),
])
def test_expose_line_variants(line, port):
    assert find_exposed_port(BASE + line + "\n") == port


@pytest.mark.parametrize("line", [
    "# EXPOSE 1234",
    "EXPOSE $PORT",
    "EXPOSE 70000",
    "EXPOSED_PORT=8080",
    "RUN echo EXPOSE 8080",
])
def test_unusable_lines_fall_back(line):
    assert find_exposed_port(BASE + line + "\n") is None
    assert resolve_port(BASE + line + "\n", default=8081) == 8081
