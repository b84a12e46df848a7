from pathlib import Path

import pytest

from github2k8s.pacts.types import RunConfig


@pytest.fixture
def make_checkout(tmp_path):
    """Create a checkout directory from a {relative path: content} mapping."""
    def _make(files: dict, name: str = "shop") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root
    return _make


@pytest.fixture
def run_config():
    return RunConfig(repo_name="shop", namespace="shop", image_tag="12345")
