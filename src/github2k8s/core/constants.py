"""Constants and rule tables shared by the pipeline stages."""

import re

from github2k8s.pacts.types import EngineSpec

DEFAULT_PORT = 80
DEFAULT_PVC_SIZE = "10Gi"
DEFAULT_OUTPUT_DIR = "k8s-output"
FALLBACK_NAME = "app"

# DNS-1123 label limit
MAX_NAME_LENGTH = 63

RECIPE_FILENAME = "dockerfile"  # compared lowercased
ENV_FILENAME = ".env"
INIT_SQL_FILENAME = "init.sql"  # compared lowercased
INIT_SQL_SUFFIX = "-init.sql"

# Directories never worth descending into
IGNORE_DIRS = {
    ".git", ".hg", ".svn",
    "node_modules", ".venv", "venv", "__pycache__",
    ".mypy_cache", ".pytest_cache", ".tox", ".next",
}

_INVALID_NAME_CHARS_RE = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")

# First token "EXPOSE" (any case), then the first run of digits on that line
_EXPOSE_LINE_RE = re.compile(r"^\s*expose\b(.*)$", re.IGNORECASE | re.MULTILINE)
_DIGITS_RE = re.compile(r"\d+")

# Valid ConfigMap/Secret data keys
_DATA_KEY_RE = re.compile(r"^[-._a-zA-Z0-9]+$")

# Shell-style ".env" lines: "export KEY=VALUE"
_EXPORT_PREFIX_RE = re.compile(r"^export\s+")

# Docker image tag grammar
_IMAGE_TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")

# Kubernetes resource quantity, e.g. 10Gi, 500Mi, 1.5G
_QUANTITY_RE = re.compile(r"^\d+(\.\d+)?(Ki|Mi|Gi|Ti|Pi|Ei|k|M|G|T|P|E)?$")

# Env key classification, checked in order. First match wins.
# (kind, pattern, bucket) with kind one of "substring", "prefix".
SECRET_KEY_RULES = (
    ("substring", "PASSWORD", "secret"),
    ("substring", "PASS", "secret"),
    ("substring", "TOKEN", "secret"),
    ("substring", "SECRET", "secret"),
    ("substring", "KEY", "secret"),
    ("prefix", "DB_", "secret"),
)
DEFAULT_ENV_BUCKET = "config"

# Env keys naming the database engine, most explicit first
DB_TYPE_KEYS = ("DATABASE_TYPE", "DB_ENGINE", "DB_TYPE", "ENGINE")
DB_HOST_KEYS = ("DATABASE_HOST", "DB_HOST")

INIT_SQL_MOUNT_PATH = "/docker-entrypoint-initdb.d"
INIT_SQL_KEY = "init.sql"

ENGINES = {
    "postgres": EngineSpec(
        name="postgres",
        image="postgres:15",
        port=5432,
        data_path="/var/lib/postgresql/data",
        init_command=(
            'PGPASSWORD="${{POSTGRES_PASSWORD:-}}" psql -h {host} -p {port} '
            '-U "${{POSTGRES_USER:-postgres}}" -d "${{POSTGRES_DB:-postgres}}" '
            '-v ON_ERROR_STOP=1 -f {init_path}'
        ),
        required_env=("POSTGRES_PASSWORD", "POSTGRES_HOST_AUTH_METHOD"),
    ),
    "mysql": EngineSpec(
        name="mysql",
        image="mysql:8",
        port=3306,
        data_path="/var/lib/mysql",
        init_command=(
            'mysql -h {host} -P {port} -u root -p"${{MYSQL_ROOT_PASSWORD:-}}" '
            '"${{MYSQL_DATABASE:-mysql}}" < {init_path}'
        ),
        required_env=(
            "MYSQL_ROOT_PASSWORD", "MYSQL_ALLOW_EMPTY_PASSWORD", "MYSQL_RANDOM_ROOT_PASSWORD",
        ),
    ),
    "mariadb": EngineSpec(
        name="mariadb",
        image="mariadb:11",
        port=3306,
        data_path="/var/lib/mysql",
        init_command=(
            'mariadb -h {host} -P {port} -u root -p"${{MARIADB_ROOT_PASSWORD:-}}" '
            '"${{MARIADB_DATABASE:-mysql}}" < {init_path}'
        ),
        required_env=(
            "MARIADB_ROOT_PASSWORD", "MARIADB_ALLOW_EMPTY_ROOT_PASSWORD",
            "MARIADB_RANDOM_ROOT_PASSWORD", "MYSQL_ROOT_PASSWORD",
        ),
    ),
    "mongodb": EngineSpec(
        name="mongodb",
        image="mongo:7",
        port=27017,
        data_path="/data/db",
        init_command=(
            'mongosh --host {host} --port {port} '
            '"${{MONGO_INITDB_DATABASE:-test}}" < {init_path}'
        ),
    ),
}

# Substring of the lowercased engine value -> engine name, checked in order
ENGINE_RULES = (
    ("postgres", "postgres"),
    ("mariadb", "mariadb"),
    ("mysql", "mysql"),
    ("mongo", "mongodb"),
)

# Readiness/init loop baked into the generated initContainer
DB_POLL_INTERVAL_SECONDS = 2
DB_INIT_ATTEMPTS = 5
DB_INIT_BACKOFF_SECONDS = 5

# Output file suffix per kind
KIND_SUFFIXES = {
    "Namespace": "namespace",
    "Deployment": "deployment",
    "Service": "service",
    "ConfigMap": "configmap",
    "Secret": "secret",
    "PersistentVolumeClaim": "pvc",
}

API_VERSIONS = {
    "Namespace": "v1",
    "Deployment": "apps/v1",
    "Service": "v1",
    "ConfigMap": "v1",
    "Secret": "v1",
    "PersistentVolumeClaim": "v1",
}
