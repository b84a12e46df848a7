"""Resource name normalization and per-run collision handling."""

from github2k8s.core.constants import (
    FALLBACK_NAME, MAX_NAME_LENGTH, _HYPHEN_RUN_RE, _INVALID_NAME_CHARS_RE,
)


def _clean(value: str) -> str:
    name = _INVALID_NAME_CHARS_RE.sub("-", value.lower())
    name = _HYPHEN_RUN_RE.sub("-", name).strip("-")
    return name[:MAX_NAME_LENGTH].rstrip("-")


def normalize_name(value: str, fallback: str = "") -> str:
    """Turn an arbitrary string into a DNS-label-safe name.

    Lowercases, maps anything outside ``[a-z0-9-]`` to ``-``, collapses
    hyphen runs and trims hyphens at both ends. An empty result falls back
    to the normalized *fallback* (the repository name), then to ``app``.
    Never raises and is idempotent.
    """
    name = _clean(value or "")
    if not name:
        name = _clean(fallback or "")
    return name or FALLBACK_NAME


def service_raw_name(source_dir: str, repo_name: str) -> str:
    """Raw (pre-normalization) name for a service directory.

    The checkout root is named after the repository, sub-directories are
    prefixed with it: ``worker`` → ``<repo>-worker``, ``svc/api`` → ``<repo>-svc-api``.
    """
    rel = source_dir.strip("/")
    if rel in ("", "."):
        return repo_name
    return f"{repo_name}-{rel.replace('/', '-')}"


class NameRegistry:
    """Hands out unique names within a run, suffixing ``-2``, ``-3``… on collision."""

    def __init__(self, reserved=()):
        self._taken: set[str] = set(reserved)

    def claim(self, base: str) -> str:
        """Reserve *base* (normalized first) or the first free suffixed variant."""
        base = normalize_name(base)
        if base not in self._taken:
            self._taken.add(base)
            return base
        counter = 2
        while True:
            suffix = f"-{counter}"
            stem = base[:MAX_NAME_LENGTH - len(suffix)].rstrip("-")
            candidate = f"{stem}{suffix}"
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate
            counter += 1
