"""Public contracts: the data types passed between pipeline stages."""

from github2k8s.pacts.types import (
    Github2k8sError, ScanError, SynthesisError,
    RunConfig, EngineSpec, DatabaseDescriptor, ServiceDescriptor,
    EnvPartition, ManifestDocument, ManifestGraph,
)

__all__ = [
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
]
