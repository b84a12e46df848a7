"""github2k8s: generate Kubernetes manifests from a repository's Dockerfiles.

Re-exports the public API of the pipeline stages.
"""

from github2k8s.pacts.types import (
    Github2k8sError, ScanError, SynthesisError,
    RunConfig, EngineSpec, DatabaseDescriptor, ServiceDescriptor,
    EnvPartition, ManifestDocument, ManifestGraph,
)
from github2k8s.core.naming import normalize_name, NameRegistry
from github2k8s.core.envfile import parse_env, classify_env, classify_key
from github2k8s.core.ports import find_exposed_port, resolve_port
from github2k8s.core.database import detect_engine
from github2k8s.core.synthesize import synthesize, image_reference
from github2k8s.io.scanning import scan_repository
from github2k8s.io.output import write_manifests, render_document
from github2k8s.io.config import load_config, build_run_config

__all__ = [
    # Types & errors
    "Github2k8sError",
    "ScanError",
    "SynthesisError",
    "RunConfig",
    "EngineSpec",
    "DatabaseDescriptor",
    "ServiceDescriptor",
    "EnvPartition",
    "ManifestDocument",
    "ManifestGraph",
    # Pure stages
    "normalize_name",
    "NameRegistry",
    "parse_env",
    "classify_env",
    "classify_key",
    "find_exposed_port",
    "resolve_port",
    "detect_engine",
    # Pipeline
    "scan_repository",
    "synthesize",
    "image_reference",
    "write_manifests",
    "render_document",
    "load_config",
    "build_run_config",
]
