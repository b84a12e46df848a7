"""CLI entry point: argument parsing, orchestration."""

import argparse
import os
import subprocess
import sys

import yaml

from github2k8s.core.naming import normalize_name
from github2k8s.core.synthesize import image_reference, synthesize
from github2k8s.io.config import CONFIG_FILENAME, build_run_config, load_config
from github2k8s.io.external import (
    apply_manifests, build_image, clone_repository, repo_name_from_url,
)
from github2k8s.io.output import emit_warnings, manifest_filename, write_manifests
from github2k8s.io.scanning import scan_repository
from github2k8s.pacts.types import Github2k8sError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Kubernetes manifests from a repository's Dockerfiles"
    )
    parser.add_argument(
        "source", nargs="?",
        help="Checkout to scan (default: . unless --repo-url is given)",
    )
    parser.add_argument(
        "--repo-url",
        help="Clone this repository first (GITHUB_TOKEN is used for HTTPS auth)",
    )
    parser.add_argument("--branch", help="Branch to clone (default: remote HEAD)")
    parser.add_argument(
        "--workdir",
        help="Where to clone --repo-url (default: ./<repo name>)",
    )
    parser.add_argument(
        "--repo-name",
        help="Repository name used for the namespace and root service (default: directory name)",
    )
    parser.add_argument("--namespace", help="Target namespace (default: repository name)")
    parser.add_argument("--tag", help="Image tag (default: random 5-digit tag)")
    parser.add_argument("--registry", help="Image registry prefix, e.g. ghcr.io/acme")
    parser.add_argument("--pvc-size", help="Database PVC size (default: 10Gi)")
    parser.add_argument(
        "--default-port", type=int,
        help="Port used when a Dockerfile has no EXPOSE (default: 80)",
    )
    parser.add_argument(
        "--output-dir",
        help="Where to write the manifests (default: k8s-output)",
    )
    parser.add_argument(
        "--config",
        help=f"Configuration file (default: <source>/{CONFIG_FILENAME})",
    )
    parser.add_argument(
        "--build", action="store_true",
        help="docker build every service image after generating manifests",
    )
    parser.add_argument(
        "--apply", action="store_true",
        help="kubectl apply the generated manifests",
    )
    return parser


def _resolve_source(args) -> tuple[str, str]:
    """Return (checkout dir, repository name), cloning if a URL was given."""
    if args.repo_url:
        repo_name = args.repo_name or repo_name_from_url(args.repo_url)
        dest = args.workdir or os.path.join(".", normalize_name(repo_name))
        clone_repository(args.repo_url, dest, branch=args.branch,
                         token=os.environ.get("GITHUB_TOKEN"))
        return dest, repo_name
    source = args.source or "."
    repo_name = args.repo_name or os.path.basename(os.path.realpath(source))
    return source, repo_name


def run(args) -> int:
    """Run the pipeline for parsed *args*; returns the exit code."""
    # Step 1: get a checkout
    source, repo_name = _resolve_source(args)

    # Step 2: load config
    config_path = args.config or os.path.join(source, CONFIG_FILENAME)
    config = load_config(config_path)
    run_config = build_run_config(
        config, repo_name,
        namespace=args.namespace, image_tag=args.tag, image_registry=args.registry,
        pvc_size=args.pvc_size, default_port=args.default_port,
    )
    output_dir = args.output_dir or config["output_dir"]
    print(f"Repository: {run_config.repo_name}, namespace: {run_config.namespace}, "
          f"image tag: {run_config.image_tag}", file=sys.stderr)

    # Step 3: scan
    warnings: list[str] = []
    services = scan_repository(source, run_config, warnings)
    print(f"Found {len(services)} Dockerfile(s)", file=sys.stderr)

    # Step 4: synthesize
    graph, warnings = synthesize(services, run_config, warnings)

    # Step 5: emit warnings
    emit_warnings(warnings)

    # Step 6: write outputs
    if not graph.of_kind("Deployment"):
        print("No services generated - nothing to write.", file=sys.stderr)
        return 2
    write_manifests(graph, output_dir)

    # Step 7: external collaborators
    if args.build:
        for svc in services:
            if graph.get("Deployment", svc.normalized_name) is None:
                continue
            build_image(os.path.join(source, svc.source_dir),
                        image_reference(svc.normalized_name, run_config))
    namespace_doc = graph.get("Namespace", run_config.namespace)
    namespace_file = os.path.join(output_dir, manifest_filename(namespace_doc))
    if args.apply:
        apply_manifests(output_dir, run_config.namespace, namespace_manifest=namespace_file)

    print(f"Namespace: {run_config.namespace}")
    if not args.apply:
        print(f"Apply with: kubectl apply -f {namespace_file} && "
              f"kubectl apply -n {run_config.namespace} -f {output_dir}")
    return 0


def main(argv=None):
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    try:
        code = run(args)
    except (Github2k8sError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        code = 1
    except subprocess.CalledProcessError as exc:
        print(f"Error: command failed with exit code {exc.returncode}: "
              f"{exc.cmd[0] if exc.cmd else '?'}", file=sys.stderr)
        code = 1
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)
