"""Manifest synthesis: service descriptors → ManifestGraph."""

from github2k8s.pacts.types import (
    ManifestGraph, RunConfig, ServiceDescriptor, SynthesisError,
)
from github2k8s.core.constants import INIT_SQL_KEY, INIT_SQL_MOUNT_PATH
from github2k8s.core.documents import (
    configmap_document, container_spec, deployment_document, env_from,
    init_sql_volume, namespace_document, pvc_document, pvc_volume,
    secret_document, service_document, wait_for_db_container,
)
from github2k8s.core.envfile import classify_env, is_valid_data_key
from github2k8s.core.naming import NameRegistry


def image_reference(name: str, run_config: RunConfig) -> str:
    """``[<registry>/]<name>:<tag>`` for a service image."""
    registry = run_config.image_registry.rstrip("/")
    if registry:
        return f"{registry}/{name}:{run_config.image_tag}"
    return f"{name}:{run_config.image_tag}"


def _valid_env_entries(svc: ServiceDescriptor, warnings: list[str]) -> list[tuple[str, str]]:
    """Drop env keys that cannot be ConfigMap/Secret data keys."""
    entries = []
    for key, value in svc.env_entries:
        if is_valid_data_key(key):
            entries.append((key, value))
        else:
            warnings.append(f"{svc.normalized_name}: env key '{key}' is not a valid "
                            f"ConfigMap/Secret key, skipped")
    return entries


def _build_database(svc: ServiceDescriptor, env_refs: list[dict], env_keys: set,
                    namespace: str, names: NameRegistry,
                    warnings: list[str]) -> tuple[list, dict, dict]:
    """Build the database documents for a bound service.

    Returns (documents, wait-for-db initContainer, init-SQL volume for the
    service pod).
    """
    binding = svc.db_binding
    engine = binding.engine
    if engine.required_env and not env_keys & set(engine.required_env):
        warnings.append(f"{svc.normalized_name}: {engine.name} needs one of "
                        f"{', '.join(engine.required_env)} in .env, the database may not start")
    db_name = names.claim(f"{svc.normalized_name}-db")
    pvc_name = names.claim(f"{db_name}-data")
    init_cm_name = names.claim(f"{db_name}-init")

    db_container = container_spec(
        engine.name, engine.image, port=engine.port, env_refs=env_refs,
        volume_mounts=[
            {"name": "data", "mountPath": engine.data_path},
            {"name": "init-sql", "mountPath": INIT_SQL_MOUNT_PATH, "readOnly": True},
        ],
    )
    docs = [
        pvc_document(pvc_name, namespace, binding.pvc_size),
        configmap_document(init_cm_name, namespace, {INIT_SQL_KEY: svc.init_sql}),
        deployment_document(
            db_name, namespace, [db_container],
            volumes=[pvc_volume("data", pvc_name), init_sql_volume("init-sql", init_cm_name)],
        ),
        service_document(db_name, namespace, engine.port),
    ]
    init_container = wait_for_db_container(engine, db_name, env_refs, "db-init-sql")
    return docs, init_container, init_sql_volume("db-init-sql", init_cm_name)


def _build_service_subset(svc: ServiceDescriptor, run_config: RunConfig,
                          names: NameRegistry, warnings: list[str]) -> list:
    """All documents owned by one service, in emission order."""
    name = svc.normalized_name
    namespace = run_config.namespace
    docs = []

    env_refs: list[dict] = []
    env_keys: set = set()
    if svc.env_file is not None:
        partition = classify_env(_valid_env_entries(svc, warnings))
        config_name = names.claim(f"{name}-config")
        secret_name = names.claim(f"{name}-secret")
        docs.append(configmap_document(config_name, namespace, partition.config_entries))
        docs.append(secret_document(secret_name, namespace, partition.secret_entries))
        env_refs = env_from(config_name, secret_name)
        env_keys = partition.keys()

    init_containers = []
    volumes = []
    db_docs = []
    if svc.db_binding is not None:
        if not svc.init_sql_file:
            raise SynthesisError(f"database bound to '{name}' but no init SQL file attached")
        db_docs, init_container, init_volume = _build_database(
            svc, env_refs, env_keys, namespace, names, warnings)
        init_containers.append(init_container)
        volumes.append(init_volume)

    container = container_spec(name, image_reference(name, run_config),
                               port=svc.exposed_port, env_refs=env_refs)
    docs.append(deployment_document(name, namespace, [container],
                                    init_containers=init_containers, volumes=volumes))
    docs.append(service_document(name, namespace, svc.exposed_port))
    docs.extend(db_docs)
    return docs


def _check_subset(graph: ManifestGraph, subset: list) -> None:
    """Raise SynthesisError if the subset clashes with or dangles from the graph."""
    staged = {}
    for doc in subset:
        if doc.key in graph or doc.key in staged:
            raise SynthesisError(f"duplicate {doc.kind} '{doc.name}'")
        staged[doc.key] = doc
    missing = graph.dangling_references(extra=staged)
    if missing:
        src, (kind, ref_name) = missing[0]
        raise SynthesisError(f"{src} references missing {kind} '{ref_name}'")


def synthesize(services: list[ServiceDescriptor], run_config: RunConfig,
               warnings: list[str] | None = None) -> tuple[ManifestGraph, list[str]]:
    """Main synthesis: returns (graph, warnings).

    A service whose documents cannot be built consistently is dropped with a
    warning. The complete graph is validated at the end and a dangling
    reference aborts the run with SynthesisError.
    """
    if warnings is None:
        warnings = []
    graph = ManifestGraph()
    graph.add(namespace_document(run_config.namespace))

    # Service names are final; derived names must steer clear of them
    names = NameRegistry(reserved=[s.normalized_name for s in services])
    for svc in services:
        try:
            subset = _build_service_subset(svc, run_config, names, warnings)
            _check_subset(graph, subset)
        except SynthesisError as exc:
            warnings.append(f"service '{svc.normalized_name}' ({svc.source_dir}) skipped: {exc}")
            continue
        for doc in subset:
            graph.add(doc)
        if svc.env_file is None:
            warnings.append(f"{svc.normalized_name}: no .env file, ConfigMap/Secret not generated")

    graph.validate()
    return graph, warnings
