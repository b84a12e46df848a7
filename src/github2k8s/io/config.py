"""Configuration handling: load github2k8s.yaml and build the RunConfig."""

import os
import random

import yaml

from github2k8s.core.constants import (
    DEFAULT_OUTPUT_DIR, DEFAULT_PORT, DEFAULT_PVC_SIZE, _IMAGE_TAG_RE, _QUANTITY_RE,
)
from github2k8s.core.naming import normalize_name
from github2k8s.pacts.types import RunConfig

CONFIG_FILENAME = "github2k8s.yaml"


def load_config(path: str) -> dict:
    """Load github2k8s.yaml or return the default config."""
    if os.path.exists(path):
        with open(path, encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
        if not isinstance(cfg, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
    else:
        cfg = {}
    cfg.setdefault("pvc_size", DEFAULT_PVC_SIZE)
    cfg.setdefault("default_port", DEFAULT_PORT)
    cfg.setdefault("output_dir", DEFAULT_OUTPUT_DIR)
    cfg.setdefault("image_registry", "")
    cfg.setdefault("image_tag", None)
    cfg.setdefault("namespace", None)
    cfg.setdefault("exclude", [])
    return cfg


def generate_image_tag() -> str:
    """Random zero-padded 5-digit image tag."""
    return f"{random.randrange(100000):05d}"


def _validate_port(value) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"default_port must be an integer, got {value!r}") from exc
    if not 1 <= port <= 65535:
        raise ValueError(f"default_port must be within 1..65535, got {port}")
    return port


def _validate_pvc_size(value) -> str:
    size = str(value).strip()
    if not _QUANTITY_RE.match(size):
        raise ValueError(f"pvc_size must be a Kubernetes quantity like 10Gi, got {value!r}")
    return size


def _validate_image_tag(value) -> str:
    tag = str(value)
    if not _IMAGE_TAG_RE.match(tag):
        raise ValueError(f"image tag {value!r} is not a valid Docker tag")
    return tag


def build_run_config(cfg: dict, repo_name: str, **overrides) -> RunConfig:
    """Merge config values and non-None CLI *overrides* into a RunConfig.

    The namespace defaults to the repository's normalized name; a missing tag
    is generated.
    """
    merged = dict(cfg)
    merged.update({k: v for k, v in overrides.items() if v is not None})

    repo = normalize_name(repo_name)
    namespace = normalize_name(merged.get("namespace") or repo, fallback=repo)
    tag = merged.get("image_tag")
    image_tag = _validate_image_tag(tag) if tag not in (None, "") else generate_image_tag()
    return RunConfig(
        repo_name=repo,
        namespace=namespace,
        image_tag=image_tag,
        image_registry=str(merged.get("image_registry") or ""),
        pvc_size=_validate_pvc_size(merged.get("pvc_size", DEFAULT_PVC_SIZE)),
        default_port=_validate_port(merged.get("default_port", DEFAULT_PORT)),
        exclude=tuple(str(e) for e in merged.get("exclude") or ()),
    )
