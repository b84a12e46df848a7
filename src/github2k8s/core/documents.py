"""Kubernetes document builders: one function per resource kind."""

from github2k8s.core.constants import (
    API_VERSIONS, DB_INIT_ATTEMPTS, DB_INIT_BACKOFF_SECONDS, DB_POLL_INTERVAL_SECONDS,
    INIT_SQL_KEY, INIT_SQL_MOUNT_PATH,
)
from github2k8s.pacts.types import EngineSpec, ManifestDocument


def _document(kind: str, name: str, namespace: str | None, **fields) -> ManifestDocument:
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    labels = fields.pop("labels", None)
    if labels:
        metadata["labels"] = labels
    body = {"apiVersion": API_VERSIONS[kind], "kind": kind, "metadata": metadata}
    body.update(fields)
    return ManifestDocument(kind=kind, name=name, body=body)


def namespace_document(name: str) -> ManifestDocument:
    return _document("Namespace", name, None)


def env_from(config_name: str | None, secret_name: str | None) -> list[dict]:
    """Bulk env injection from a ConfigMap and/or Secret."""
    refs = []
    if config_name:
        refs.append({"configMapRef": {"name": config_name}})
    if secret_name:
        refs.append({"secretRef": {"name": secret_name}})
    return refs


def container_spec(name: str, image: str, port: int | None = None,
                   env_refs: list[dict] | None = None,
                   volume_mounts: list[dict] | None = None) -> dict:
    """Build a container entry. Empty optional sections are left out."""
    container = {"name": name, "image": image}
    if port is not None:
        container["ports"] = [{"containerPort": port}]
    if env_refs:
        container["envFrom"] = env_refs
    if volume_mounts:
        container["volumeMounts"] = volume_mounts
    return container


def deployment_document(name: str, namespace: str, containers: list[dict],
                        init_containers: list[dict] | None = None,
                        volumes: list[dict] | None = None) -> ManifestDocument:
    """Single-replica Deployment selecting pods by ``app: <name>``."""
    labels = {"app": name}
    pod_spec = {}
    if init_containers:
        pod_spec["initContainers"] = init_containers
    pod_spec["containers"] = containers
    if volumes:
        pod_spec["volumes"] = volumes
    spec = {
        "replicas": 1,
        "selector": {"matchLabels": dict(labels)},
        "template": {"metadata": {"labels": dict(labels)}, "spec": pod_spec},
    }
    return _document("Deployment", name, namespace, labels=labels, spec=spec)


def service_document(name: str, namespace: str, port: int) -> ManifestDocument:
    """ClusterIP Service forwarding *port* to the same container port."""
    spec = {
        "type": "ClusterIP",
        "selector": {"app": name},
        "ports": [{"name": f"tcp-{port}", "port": port, "targetPort": port, "protocol": "TCP"}],
    }
    return _document("Service", name, namespace, labels={"app": name}, spec=spec)


def configmap_document(name: str, namespace: str, data: dict) -> ManifestDocument:
    return _document("ConfigMap", name, namespace, data={k: str(v) for k, v in data.items()})


def secret_document(name: str, namespace: str, data: dict) -> ManifestDocument:
    # stringData: the API server encodes it, the generated file stays readable
    return _document("Secret", name, namespace, type="Opaque",
                     stringData={k: str(v) for k, v in data.items()})


def pvc_document(name: str, namespace: str, size: str) -> ManifestDocument:
    spec = {
        "accessModes": ["ReadWriteOnce"],
        "resources": {"requests": {"storage": size}},
    }
    return _document("PersistentVolumeClaim", name, namespace, spec=spec)


def init_sql_volume(volume_name: str, configmap_name: str) -> dict:
    return {"name": volume_name, "configMap": {"name": configmap_name}}


def pvc_volume(volume_name: str, claim_name: str) -> dict:
    return {"name": volume_name, "persistentVolumeClaim": {"claimName": claim_name}}


def wait_for_db_script(engine: EngineSpec, host: str) -> str:
    """Shell script: poll host:port until it accepts TCP, then run the init
    command with a bounded number of attempts.

    The database image has usually applied the same SQL from its initdb.d
    hook already, so a failing re-run (table exists) is expected. Once the
    attempts are used up the script exits 0 and the service starts anyway.
    """
    init_path = f"{INIT_SQL_MOUNT_PATH}/{INIT_SQL_KEY}"
    init_cmd = engine.render_init_command(host=host, init_path=init_path)
    return (
        f'echo "waiting for {host}:{engine.port}"\n'
        f"until (echo > /dev/tcp/{host}/{engine.port}) 2>/dev/null; do\n"
        f"  sleep {DB_POLL_INTERVAL_SECONDS}\n"
        f"done\n"
        f"for attempt in $(seq 1 {DB_INIT_ATTEMPTS}); do\n"
        f"  if {init_cmd}; then\n"
        f'    echo "database initialized"\n'
        f"    exit 0\n"
        f"  fi\n"
        f"  if [ \"$attempt\" -lt {DB_INIT_ATTEMPTS} ]; then\n"
        f'    echo "init attempt $attempt/{DB_INIT_ATTEMPTS} failed, retrying in {DB_INIT_BACKOFF_SECONDS}s"\n'
        f"    sleep {DB_INIT_BACKOFF_SECONDS}\n"
        f"  fi\n"
        f"done\n"
        f'echo "init SQL not applied after {DB_INIT_ATTEMPTS} attempts '
        f'(already initialized?), starting anyway" >&2\n'
        f"exit 0\n"
    )


def wait_for_db_container(engine: EngineSpec, host: str, env_refs: list[dict],
                          init_volume: str) -> dict:
    """initContainer gating a service on its database being up and initialized."""
    container = container_spec(
        "wait-for-db", engine.image, env_refs=env_refs,
        volume_mounts=[{"name": init_volume, "mountPath": INIT_SQL_MOUNT_PATH, "readOnly": True}],
    )
    container["command"] = ["/bin/bash", "-c"]
    container["args"] = [wait_for_db_script(engine, host)]
    return container
