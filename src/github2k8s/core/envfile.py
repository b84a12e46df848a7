"""Env file parsing and config/secret classification."""

from github2k8s.core.constants import (
    DEFAULT_ENV_BUCKET, SECRET_KEY_RULES, _DATA_KEY_RE, _EXPORT_PREFIX_RE,
)
from github2k8s.pacts.types import EnvPartition


def _strip_quotes(value: str) -> str:
    """Drop one pair of matching surrounding quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_env(text: str) -> list[tuple[str, str]]:
    """Parse ``KEY=VALUE`` lines into ordered pairs.

    Blank lines, ``#`` comments and lines without ``=`` (or with an empty key)
    are skipped. A leading ``export`` is dropped. A repeated key keeps its
    first position and its last value.
    """
    entries: dict[str, str] = {}
    for line in text.splitlines():
        stripped = _EXPORT_PREFIX_RE.sub("", line.strip())
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        key = key.strip()
        if not key:
            continue
        entries[key] = _strip_quotes(value.strip())
    return list(entries.items())


def _rule_matches(kind: str, pattern: str, key: str) -> bool:
    if kind == "prefix":
        return key.startswith(pattern)
    return pattern in key


def classify_key(key: str) -> str:
    """Return ``"secret"`` or ``"config"`` for a key name (case-sensitive)."""
    for kind, pattern, bucket in SECRET_KEY_RULES:
        if _rule_matches(kind, pattern, key):
            return bucket
    return DEFAULT_ENV_BUCKET


def classify_env(entries) -> EnvPartition:
    """Split (key, value) pairs into config and secret entries by key name."""
    partition = EnvPartition()
    for key, value in entries:
        if classify_key(key) == "secret":
            partition.secret_entries[key] = value
        else:
            partition.config_entries[key] = value
    return partition


def is_valid_data_key(key: str) -> bool:
    """Whether *key* may be used as a ConfigMap/Secret data key."""
    return bool(_DATA_KEY_RE.match(key))
