"""Exposed-port inference from Dockerfile text."""

from github2k8s.core.constants import DEFAULT_PORT, _DIGITS_RE, _EXPOSE_LINE_RE


def find_exposed_port(recipe_text: str) -> int | None:
    """Return the first number on the first EXPOSE line, or None.

    Only the first EXPOSE directive counts. ``EXPOSE 8080/tcp 9090`` gives
    8080. A value outside 1..65535 is treated as no port at all.
    """
    match = _EXPOSE_LINE_RE.search(recipe_text)
    if not match:
        return None
    digits = _DIGITS_RE.search(match.group(1))
    if not digits:
        return None
    port = int(digits.group(0))
    if not 1 <= port <= 65535:
        return None
    return port


def resolve_port(recipe_text: str, default: int = DEFAULT_PORT) -> int:
    """Exposed port of a Dockerfile, falling back to *default*."""
    port = find_exposed_port(recipe_text)
    return default if port is None else port
