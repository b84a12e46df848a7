"""Database engine detection from service env values."""

from github2k8s.core.constants import DB_HOST_KEYS, DB_TYPE_KEYS, ENGINE_RULES, ENGINES
from github2k8s.pacts.types import EngineSpec


def engine_hints(env: dict) -> list[str]:
    """Env values that may name the engine: explicit type keys, then host keys."""
    return [env[key] for key in DB_TYPE_KEYS + DB_HOST_KEYS if env.get(key)]


def engine_hint(env: dict) -> str | None:
    """The most explicit engine hint, or None."""
    hints = engine_hints(env)
    return hints[0] if hints else None


def match_engine(value: str) -> EngineSpec | None:
    """Map a free-text value to an engine by substring (case-insensitive)."""
    lowered = value.lower()
    for needle, engine in ENGINE_RULES:
        if needle in lowered:
            return ENGINES[engine]
    return None


def detect_engine(env: dict, has_init_sql: bool) -> EngineSpec | None:
    """Return the engine to deploy for a service, or None.

    Hints are tried in order and the first recognized one wins, so an odd
    ``DB_TYPE`` does not hide a usable ``DATABASE_HOST``. Without init SQL
    there is nothing to initialize, so no engine is returned even when the
    env names one (e.g. ``DATABASE_HOST=postgres-primary``).
    """
    if not has_init_sql:
        return None
    for hint in engine_hints(env):
        engine = match_engine(hint)
        if engine is not None:
            return engine
    return None
