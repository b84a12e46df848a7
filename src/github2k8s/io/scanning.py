"""Repository scanning: find Dockerfiles and their companion files."""

import os
import sys
from pathlib import Path

from github2k8s.core.constants import (
    ENV_FILENAME, IGNORE_DIRS, INIT_SQL_FILENAME, INIT_SQL_SUFFIX, RECIPE_FILENAME,
)
from github2k8s.core.database import detect_engine, engine_hint
from github2k8s.core.envfile import parse_env
from github2k8s.core.naming import NameRegistry, normalize_name, service_raw_name
from github2k8s.core.ports import find_exposed_port, resolve_port
from github2k8s.pacts.types import (
    DatabaseDescriptor, RunConfig, ScanError, ServiceDescriptor,
)


def _read_text(path: str, warnings: list[str]) -> str | None:
    """Read a text file, or record a warning and return None."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as exc:
        warnings.append(f"could not read {path} ({exc.__class__.__name__}), treated as absent")
        return None


def _find_recipe(filenames: list[str]) -> str | None:
    matches = sorted(f for f in filenames if f.lower() == RECIPE_FILENAME)
    return matches[0] if matches else None


def _find_init_sql(filenames: list[str]) -> str | None:
    """``init.sql`` (any case) wins, then the first ``*-init.sql``."""
    exact = sorted(f for f in filenames if f.lower() == INIT_SQL_FILENAME)
    if exact:
        return exact[0]
    suffixed = sorted(f for f in filenames if f.lower().endswith(INIT_SQL_SUFFIX))
    return suffixed[0] if suffixed else None


def iter_recipe_dirs(root: str):
    """Yield (relative POSIX dir, recipe filename, filenames) ordered by path.

    The checkout root comes first, then relative paths in plain string order
    (``a``, ``a-c``, ``a/z``), so output is stable across runs on identical
    input.
    """
    root_path = Path(root)
    found = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = [d for d in dirnames if d not in IGNORE_DIRS]
        recipe = _find_recipe(filenames)
        if recipe is None:
            continue
        rel = Path(dirpath).relative_to(root_path).as_posix()
        found.append((rel, recipe, sorted(filenames)))
    found.sort(key=lambda entry: (entry[0] != ".", entry[0]))
    yield from found


def _check_root(root: str) -> None:
    if not os.path.isdir(root):
        raise ScanError(f"checkout root '{root}' is not a directory")
    try:
        os.listdir(root)
    except OSError as exc:
        raise ScanError(f"checkout root '{root}' is not readable: {exc}") from exc


def _bind_database(svc: ServiceDescriptor, run_config: RunConfig,
                   warnings: list[str]) -> None:
    """Attach a DatabaseDescriptor when env + init SQL + a known engine line up."""
    env = dict(svc.env_entries)
    hint = engine_hint(env)
    if svc.env_file is None or svc.init_sql_file is None:
        if hint or svc.init_sql_file:
            warnings.append(f"{svc.normalized_name}: database resources skipped "
                            f"(needs both .env and init SQL)")
        return
    engine = detect_engine(env, has_init_sql=True)
    if engine is None:
        if hint:
            warnings.append(f"{svc.normalized_name}: unknown database type '{hint}', "
                            f"database resources skipped")
        else:
            warnings.append(f"{svc.normalized_name}: init SQL found but no database "
                            f"type/host in .env, database resources skipped")
        return
    svc.db_binding = DatabaseDescriptor(
        engine=engine, owner=svc.normalized_name, pvc_size=run_config.pvc_size)


def _describe(root: str, rel: str, recipe: str, filenames: list[str],
              name: str, raw_name: str, run_config: RunConfig,
              warnings: list[str]) -> ServiceDescriptor:
    service_dir = os.path.join(root, rel)
    svc = ServiceDescriptor(source_dir=rel, raw_name=raw_name, normalized_name=name,
                            exposed_port=run_config.default_port)

    recipe_text = _read_text(os.path.join(service_dir, recipe), warnings) or ""
    svc.port_declared = find_exposed_port(recipe_text) is not None
    svc.exposed_port = resolve_port(recipe_text, default=run_config.default_port)
    if not svc.port_declared:
        warnings.append(f"{name}: no EXPOSE found in {rel}/{recipe}, "
                        f"defaulting to port {svc.exposed_port}")

    if ENV_FILENAME in filenames:
        env_path = os.path.join(service_dir, ENV_FILENAME)
        env_text = _read_text(env_path, warnings)
        if env_text is not None:
            svc.env_file = env_path
            svc.env_entries = parse_env(env_text)

    init_sql = _find_init_sql(filenames)
    if init_sql is not None:
        init_path = os.path.join(service_dir, init_sql)
        init_text = _read_text(init_path, warnings)
        if init_text is not None:
            svc.init_sql_file = init_path
            svc.init_sql = init_text

    _bind_database(svc, run_config, warnings)
    return svc


def scan_repository(root: str, run_config: RunConfig,
                    warnings: list[str] | None = None) -> list[ServiceDescriptor]:
    """Walk *root* and return one ServiceDescriptor per Dockerfile directory.

    Raises ScanError only when the root itself is missing or unreadable.
    Everything else degrades to a warning.
    """
    if warnings is None:
        warnings = []
    _check_root(root)

    names = NameRegistry()
    services = []
    for rel, recipe, filenames in iter_recipe_dirs(root):
        raw_name = service_raw_name(rel, run_config.repo_name)
        base = normalize_name(raw_name, fallback=run_config.repo_name)
        if base in run_config.exclude or rel in run_config.exclude:
            print(f"Excluded: {rel} ({base})", file=sys.stderr)
            continue
        name = names.claim(base)
        if name != base:
            warnings.append(f"name '{base}' already taken, {rel} renamed to '{name}'")
        services.append(_describe(root, rel, recipe, filenames, name, raw_name,
                                  run_config, warnings))

    if not services:
        warnings.append(f"no Dockerfile found under {root}")
    return services
