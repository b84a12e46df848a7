"""Output writing: one YAML file per manifest document, published atomically."""

import os
import shutil
import sys
import tempfile

import yaml

from github2k8s.core.constants import KIND_SUFFIXES
from github2k8s.pacts.types import Github2k8sError, ManifestDocument, ManifestGraph

HEADER = "# Generated by github2k8s - do not edit manually\n"


class _ManifestDumper(yaml.SafeDumper):
    """SafeDumper writing multi-line strings (scripts, SQL) as literal blocks."""

    # envFrom lists are shared between containers; never emit &id anchors
    def ignore_aliases(self, data):
        return True


def _represent_str(dumper, data):
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_ManifestDumper.add_representer(str, _represent_str)


def manifest_filename(doc: ManifestDocument) -> str:
    """``<name>-<kind suffix>.yaml``, e.g. ``api-deployment.yaml``."""
    suffix = KIND_SUFFIXES.get(doc.kind, doc.kind.lower())
    return f"{doc.name}-{suffix}.yaml"


def render_document(doc: ManifestDocument) -> str:
    """Serialize one document, header included."""
    return HEADER + yaml.dump(doc.body, Dumper=_ManifestDumper,
                              default_flow_style=False, sort_keys=False)


def _publish(staging: str, output_dir: str) -> None:
    """Swap the staged directory into place, keeping the old one until it succeeds."""
    if not os.path.exists(output_dir):
        os.rename(staging, output_dir)
        return
    if not os.path.isdir(output_dir):
        raise NotADirectoryError(f"output path '{output_dir}' exists and is not a directory")
    backup = staging + ".old"
    os.rename(output_dir, backup)
    try:
        os.rename(staging, output_dir)
    except OSError:
        os.rename(backup, output_dir)
        raise
    shutil.rmtree(backup, ignore_errors=True)


def write_manifests(graph: ManifestGraph, output_dir: str) -> list[str]:
    """Write every document of *graph* into *output_dir*. Returns the file paths.

    Files are written to a sibling staging directory first; *output_dir* is
    only replaced once all of them are on disk. On failure nothing changes.
    """
    output_dir = os.path.abspath(output_dir)
    parent = os.path.dirname(output_dir)
    os.makedirs(parent, exist_ok=True)
    staging = tempfile.mkdtemp(prefix=f".{os.path.basename(output_dir)}-", dir=parent)
    filenames: list[str] = []
    try:
        for doc in graph:
            filename = manifest_filename(doc)
            if filename in filenames:
                raise Github2k8sError(f"two documents map to the same file '{filename}'")
            with open(os.path.join(staging, filename), "w", encoding="utf-8") as f:
                f.write(render_document(doc))
            filenames.append(filename)
        _publish(staging, output_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    print(f"Wrote {len(filenames)} manifest(s) to {output_dir}", file=sys.stderr)
    return [os.path.join(output_dir, name) for name in filenames]


def emit_warnings(warnings: list[str]) -> None:
    """Print all warnings to stderr."""
    for w in warnings:
        print(f"⚠ {w}", file=sys.stderr)
