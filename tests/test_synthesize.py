import pytest

from github2k8s.core.constants import ENGINES
from github2k8s.core.documents import configmap_document, container_spec, deployment_document, env_from
from github2k8s.core.synthesize import image_reference, synthesize
from github2k8s.pacts.types import (
    DatabaseDescriptor, ManifestGraph, RunConfig, ServiceDescriptor, SynthesisError,
)


def _service(name, source_dir=".", port=9090, env=None, init_sql=None, engine=None):
    svc = ServiceDescriptor(source_dir=source_dir, raw_name=name, normalized_name=name,
                            exposed_port=port, port_declared=True)
    if env is not None:
        svc.env_file = f"{source_dir}/.env"
        svc.env_entries = list(env.items())
    if init_sql is not None:
        svc.init_sql_file = f"{source_dir}/init.sql"
        svc.init_sql = init_sql
    if engine is not None:
        svc.db_binding = DatabaseDescriptor(engine=ENGINES[engine], owner=name, pvc_size="20Gi")
    return svc


def _pod(graph, name):
    return graph.get("Deployment", name).body["spec"]["template"]["spec"]


def test_every_service_gets_deployment_and_service(run_config):
    graph, _ = synthesize([_service("shop"), _service("shop-worker", "worker")], run_config)
    assert graph.get("Namespace", "shop") is not None
    for name in ("shop", "shop-worker"):
        container = _pod(graph, name)["containers"][0]
        assert container["image"] == f"{name}:12345"
        assert container["ports"] == [{"containerPort": 9090}]
        svc_spec = graph.get("Service", name).body["spec"]
        assert svc_spec["selector"] == {"app": name}
        assert svc_spec["ports"][0]["port"] == 9090
        assert svc_spec["ports"][0]["targetPort"] == 9090
        assert graph.get("Deployment", name).body["metadata"]["namespace"] == "shop"


def test_registry_prefix(run_config):
    config = RunConfig(repo_name="shop", namespace="shop", image_tag="7",
                       image_registry="ghcr.io/acme/")
    assert image_reference("shop-api", config) == "ghcr.io/acme/shop-api:7"
    assert image_reference("shop-api", run_config) == "shop-api:12345"


def test_env_file_produces_configmap_secret_and_envfrom(run_config):
    svc = _service("shop", env={"DB_PASSWORD": "x", "LOG_LEVEL": "info"})
    graph, _ = synthesize([svc], run_config)
    assert graph.get("ConfigMap", "shop-config").body["data"] == {"LOG_LEVEL": "info"}
    secret = graph.get("Secret", "shop-secret").body
    assert secret["type"] == "Opaque"
    assert secret["stringData"] == {"DB_PASSWORD": "x"}
    assert _pod(graph, "shop")["containers"][0]["envFrom"] == [
        {"configMapRef": {"name": "shop-config"}},
        {"secretRef": {"name": "shop-secret"}},
    ]


def test_no_env_file_means_no_envfrom(run_config):
    graph, warnings = synthesize([_service("shop")], run_config)
    assert "envFrom" not in _pod(graph, "shop")["containers"][0]
    assert not graph.of_kind("ConfigMap")
    assert not graph.of_kind("Secret")
    assert any("no .env file" in w for w in warnings)


def test_invalid_env_keys_are_dropped(run_config):
    svc = _service("shop", env={"GOOD": "1", "BAD KEY": "2"})
    graph, warnings = synthesize([svc], run_config)
    assert graph.get("ConfigMap", "shop-config").body["data"] == {"GOOD": "1"}
    assert any("'BAD KEY'" in w for w in warnings)


def test_database_binding(run_config):
    svc = _service("shop", env={"DATABASE_HOST": "mysql", "DB_PASSWORD": "x"},
                   init_sql="CREATE TABLE t (id INT);\n", engine="mysql")
    graph, _ = synthesize([svc], run_config)

    pvc = graph.get("PersistentVolumeClaim", "shop-db-data").body
    assert pvc["spec"]["resources"]["requests"]["storage"] == "20Gi"
    assert graph.get("ConfigMap", "shop-db-init").body["data"] == {
        "init.sql": "CREATE TABLE t (id INT);\n"}

    db_pod = _pod(graph, "shop-db")
    db_container = db_pod["containers"][0]
    assert db_container["image"] == "mysql:8"
    assert db_container["ports"] == [{"containerPort": 3306}]
    mounts = {m["name"]: m["mountPath"] for m in db_container["volumeMounts"]}
    assert mounts == {"data": "/var/lib/mysql", "init-sql": "/docker-entrypoint-initdb.d"}
    claims = [v["persistentVolumeClaim"]["claimName"] for v in db_pod["volumes"]
              if "persistentVolumeClaim" in v]
    assert claims == ["shop-db-data"]
    assert graph.get("Service", "shop-db").body["spec"]["ports"][0]["port"] == 3306

    # the service waits for its database before starting
    app_pod = _pod(graph, "shop")
    (init,) = app_pod["initContainers"]
    assert init["image"] == "mysql:8"
    script = init["args"][0]
    assert "/dev/tcp/shop-db/3306" in script
    assert "seq 1 5" in script
    assert "sleep 5" in script
    assert "mysql -h shop-db -P 3306" in script
    assert script.rstrip().endswith("exit 0")
    assert {"name": "db-init-sql", "configMap": {"name": "shop-db-init"}} in app_pod["volumes"]


def test_derived_names_avoid_service_names(run_config):
    services = [
        _service("shop", env={"A": "1"}),
        _service("shop-config", "config"),
    ]
    graph, _ = synthesize(services, run_config)
    assert graph.get("Deployment", "shop-config") is not None
    assert graph.get("ConfigMap", "shop-config-2") is not None
    assert _pod(graph, "shop")["containers"][0]["envFrom"][0] == {
        "configMapRef": {"name": "shop-config-2"}}


def test_broken_service_is_dropped_others_survive(run_config):
    broken = _service("shop-api", "api", env={"DATABASE_HOST": "postgres"}, engine="postgres")
    graph, warnings = synthesize([_service("shop"), broken], run_config)
    assert graph.get("Deployment", "shop") is not None
    assert graph.get("Deployment", "shop-api") is None
    assert graph.get("ConfigMap", "shop-api-config") is None
    assert any("'shop-api' (api) skipped" in w for w in warnings)


def test_duplicate_service_names_are_rejected(run_config):
    graph, warnings = synthesize([_service("shop"), _service("shop", "copy")], run_config)
    assert len(graph.of_kind("Deployment")) == 1
    assert any("duplicate Deployment 'shop'" in w for w in warnings)


def test_graph_has_no_dangling_references(run_config):
    services = [
        _service("shop", env={"DB_PASSWORD": "x"}, init_sql="SELECT 1;\n", engine="postgres"),
        _service("shop-worker", "worker", env={"QUEUE": "jobs"}),
        _service("shop-web", "web"),
    ]
    graph, _ = synthesize(services, run_config)
    for doc in graph:
        for ref in doc.references():
            assert ref in graph, f"{doc.kind}/{doc.name} -> {ref}"


def test_validate_rejects_dangling_reference():
    graph = ManifestGraph()
    container = container_spec("api", "api:1", env_refs=env_from("api-config", None))
    graph.add(deployment_document("api", "", [container]))
    with pytest.raises(SynthesisError, match="ConfigMap/api-config"):
        graph.validate()
    graph.add(configmap_document("api-config", "", {}))
    graph.validate()


def test_missing_engine_credentials_are_reported(run_config):
    svc = _service("shop", env={"DATABASE_HOST": "mysql", "DB_PASSWORD": "x"},
                   init_sql="SELECT 1;\n", engine="mysql")
    _, warnings = synthesize([svc], run_config)
    assert any("mysql needs one of MYSQL_ROOT_PASSWORD" in w for w in warnings)


def test_engine_credentials_present_no_warning(run_config):
    svc = _service("shop", env={"DATABASE_HOST": "mysql", "MYSQL_ROOT_PASSWORD": "x"},
                   init_sql="SELECT 1;\n", engine="mysql")
    _, warnings = synthesize([svc], run_config)
    assert not any("needs one of" in w for w in warnings)


def test_mongodb_has_no_credential_requirement(run_config):
    svc = _service("shop", env={"DB_HOST": "mongo"}, init_sql="db.t.insert({})\n",
                   engine="mongodb")
    _, warnings = synthesize([svc], run_config)
    assert not any("needs one of" in w for w in warnings)
