"""External tools: git clone, docker build, kubectl apply."""

import os
import shutil
import subprocess
import sys
from urllib.parse import urlsplit, urlunsplit


def repo_name_from_url(url: str) -> str:
    """``https://github.com/org/my-repo.git`` → ``my-repo``."""
    path = urlsplit(url).path if "://" in url else url.split(":", 1)[-1]
    name = path.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[:-4]
    return name


def _authenticated_url(url: str, token: str | None) -> str:
    """Embed *token* as HTTPS user info; other URL schemes are left alone."""
    parts = urlsplit(url)
    if not token or parts.scheme != "https":
        return url
    host = parts.netloc.rsplit("@", 1)[-1]
    return urlunsplit((parts.scheme, f"{token}@{host}", parts.path, parts.query, parts.fragment))


def _run(cmd: list[str], shown: list[str] | None = None) -> None:
    print(f"Running: {' '.join(shown or cmd)}", file=sys.stderr)
    subprocess.run(cmd, check=True)


def clone_repository(url: str, dest: str, branch: str | None = None,
                     token: str | None = None) -> str:
    """Clone *url* into *dest* (replacing it) and return *dest*.

    The token never appears in the echoed command line.
    """
    if os.path.exists(dest):
        shutil.rmtree(dest)
    cmd = ["git", "clone"]
    if branch:
        cmd.extend(["--branch", branch, "--single-branch"])
    shown = cmd + [url, dest]
    cmd = cmd + [_authenticated_url(url, token), dest]
    _run(cmd, shown)
    return dest


def build_image(context_dir: str, image: str) -> None:
    """docker build -t <image> <context_dir>"""
    _run(["docker", "build", "-t", image, context_dir])


def apply_manifests(output_dir: str, namespace: str,
                    namespace_manifest: str | None = None) -> None:
    """kubectl apply every manifest in *output_dir* into *namespace*.

    kubectl walks a directory alphabetically, so the Namespace manifest is
    applied on its own first when given.
    """
    if namespace_manifest:
        _run(["kubectl", "apply", "-f", namespace_manifest])
    _run(["kubectl", "apply", "-n", namespace, "-f", output_dir])
