"""Public data types: descriptors, the manifest graph, run configuration."""

from dataclasses import dataclass, field


class Github2k8sError(Exception):
    """Base class for all github2k8s errors."""


class ScanError(Github2k8sError):
    """The checkout root could not be read."""


class SynthesisError(Github2k8sError):
    """A manifest subset could not be built or references a missing document."""


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings for a single synthesis run."""
    repo_name: str
    namespace: str
    image_tag: str
    image_registry: str = ""
    pvc_size: str = "10Gi"
    default_port: int = 80
    exclude: tuple = ()


@dataclass(frozen=True)
class EngineSpec:
    """Fixed metadata for a supported database engine."""
    name: str
    image: str
    port: int
    data_path: str
    init_command: str
    # The image refuses to start unless one of these env vars is set
    required_env: tuple = ()

    def render_init_command(self, host: str, init_path: str) -> str:
        """Fill the init command template for a concrete endpoint."""
        return self.init_command.format(host=host, port=self.port, init_path=init_path)


@dataclass
class DatabaseDescriptor:
    """A database bound to one service for the duration of a run."""
    engine: EngineSpec
    owner: str
    pvc_size: str = "10Gi"


@dataclass
class ServiceDescriptor:
    """One deployable unit, derived from a discovered Dockerfile."""
    source_dir: str
    raw_name: str
    normalized_name: str
    exposed_port: int = 80
    port_declared: bool = False
    env_file: str | None = None
    init_sql_file: str | None = None
    env_entries: list = field(default_factory=list)
    init_sql: str = ""
    db_binding: DatabaseDescriptor | None = None


@dataclass
class EnvPartition:
    """Environment variables split into non-sensitive and sensitive buckets."""
    config_entries: dict = field(default_factory=dict)
    secret_entries: dict = field(default_factory=dict)

    def keys(self) -> set:
        return set(self.config_entries) | set(self.secret_entries)


@dataclass
class ManifestDocument:
    """A single Kubernetes resource document, addressed by (kind, name)."""
    kind: str
    name: str
    body: dict

    @property
    def key(self) -> tuple[str, str]:
        return (self.kind, self.name)

    @property
    def namespace(self) -> str:
        return (self.body.get("metadata") or {}).get("namespace", "")

    def references(self) -> list[tuple[str, str]]:
        """Return the (kind, name) pairs this document points at."""
        refs = []
        if self.namespace:
            refs.append(("Namespace", self.namespace))
        spec = self.body.get("spec") or {}
        if self.kind == "Service":
            app = (spec.get("selector") or {}).get("app")
            if app:
                refs.append(("Deployment", app))
            return refs
        pod = (spec.get("template") or {}).get("spec") or {}
        containers = (pod.get("initContainers") or []) + (pod.get("containers") or [])
        for c in containers:
            for ef in c.get("envFrom") or []:
                if "configMapRef" in ef:
                    refs.append(("ConfigMap", ef["configMapRef"].get("name", "")))
                elif "secretRef" in ef:
                    refs.append(("Secret", ef["secretRef"].get("name", "")))
        for v in pod.get("volumes") or []:
            if "persistentVolumeClaim" in v:
                refs.append(("PersistentVolumeClaim", v["persistentVolumeClaim"].get("claimName", "")))
            elif "configMap" in v:
                refs.append(("ConfigMap", v["configMap"].get("name", "")))
            elif "secret" in v:
                refs.append(("Secret", v["secret"].get("secretName", "")))
        # Dedup, keep first-seen order
        return list(dict.fromkeys(refs))


@dataclass
class ManifestGraph:
    """The cross-referenced set of documents produced by one run."""
    documents: dict = field(default_factory=dict)

    def add(self, doc: ManifestDocument) -> None:
        if doc.key in self.documents:
            raise SynthesisError(f"duplicate {doc.kind} '{doc.name}'")
        self.documents[doc.key] = doc

    def get(self, kind: str, name: str) -> ManifestDocument | None:
        return self.documents.get((kind, name))

    def __contains__(self, key) -> bool:
        return key in self.documents

    def __iter__(self):
        return iter(self.documents.values())

    def __len__(self) -> int:
        return len(self.documents)

    def of_kind(self, kind: str) -> list[ManifestDocument]:
        return [d for d in self.documents.values() if d.kind == kind]

    def dangling_references(self, extra: dict | None = None) -> list[tuple[str, tuple[str, str]]]:
        """List (document name, missing reference) pairs.

        *extra* holds documents not merged yet (a staging subset); they are
        checked and may also satisfy references.
        """
        pool = dict(self.documents)
        pool.update(extra or {})
        missing = []
        for doc in pool.values():
            for ref in doc.references():
                if ref not in pool:
                    missing.append((f"{doc.kind}/{doc.name}", ref))
        return missing

    def validate(self) -> None:
        """Raise SynthesisError if any document references a missing one."""
        missing = self.dangling_references()
        if missing:
            details = ", ".join(f"{src} -> {kind}/{name}" for src, (kind, name) in missing)
            raise SynthesisError(f"dangling references: {details}")
