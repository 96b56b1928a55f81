"""
Infra CLI: setup, list, preview, create, destroy. Hides infrastructure tooling from the user.
Run `infra setup` once; then use `infra list`, `infra create`, `infra destroy`.
"""

import base64
import os
from pathlib import Path
import subprocess
import sys
from typing import Any

import yaml

from infrastructure.config import TAG_MANAGED, TAG_SERVICE

CONFIG_DIR = ".infra"
CONFIG_FILENAME = "config.yaml"
PROGRAM_DIR = "infrastructure"
DEFAULT_STACK_PREFIX = "dev"
KMS_SECRETS_PROVIDER_TEMPLATE = "awskms://alias/pulumi_backend_software?region={region}"


def _project_root() -> Path:
    """Directory containing infrastructure/Pulumi.yaml. Use cwd as default."""
    return Path.cwd()


def _config_path() -> Path:
    return _project_root() / CONFIG_DIR / CONFIG_FILENAME


def _load_config() -> dict[str, Any] | None:
    """Read .infra/config.yaml; INFRA_* environment variables override its values."""
    path = _config_path()
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if isinstance(loaded, dict):
            data = loaded
    overrides = {
        "backend_url": os.environ.get("INFRA_BACKEND_URL", "").strip(),
        "region": os.environ.get("INFRA_REGION", "").strip(),
        "stack_prefix": os.environ.get("INFRA_STACK_PREFIX", "").strip(),
    }
    data.update({k: v for k, v in overrides.items() if v})
    return data or None


def _save_config(backend_url: str, region: str, stack_prefix: str = DEFAULT_STACK_PREFIX) -> None:
    path = _config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            {
                "backend_url": backend_url,
                "region": region,
                "stack_prefix": stack_prefix,
            },
            f,
            default_flow_style=False,
        )
    print(f"Configuration saved to {path}")


def _require_config() -> dict[str, Any]:
    config = _load_config()
    if not config or not config.get("backend_url") or not config.get("region"):
        print("Configuration missing or incomplete. Run: infra setup", file=sys.stderr)
        sys.exit(1)
    return config


def _check_aws_credentials() -> bool:
    try:
        subprocess.run(
            ["aws", "sts", "get-caller-identity"],
            capture_output=True,
            check=True,
            timeout=10,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired):
        return False


def _run(
    cmd: list[str],
    env: dict[str, str] | None = None,
    check: bool = True,
    capture: bool = False,
    input_text: str | None = None,
) -> subprocess.CompletedProcess:
    full_env = os.environ.copy()
    if env:
        full_env.update(env)
    return subprocess.run(
        cmd,
        cwd=_project_root(),
        env=full_env,
        check=check,
        capture_output=capture,
        text=capture or input_text is not None,
        input=input_text,
    )


def _pulumi(*args: str) -> list[str]:
    return [sys.executable, "-m", "pulumi", *args, "-C", PROGRAM_DIR]


def _read_platform_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict) or "metadata" not in data:
        print(f"Not a platform.yaml: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def _stack_name(service_name: str, config: dict[str, Any]) -> str:
    prefix = config.get("stack_prefix") or DEFAULT_STACK_PREFIX
    region = config["region"]
    return f"{prefix}.{service_name}.{region}"


def _resolve_yaml_path(platform_yaml_path: str) -> Path:
    path = Path(platform_yaml_path)
    if not path.is_absolute():
        path = _project_root() / path
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        sys.exit(1)
    return path.resolve()


def _require_program_dir() -> None:
    if not (_project_root() / PROGRAM_DIR / "Pulumi.yaml").exists():
        print(
            f"{PROGRAM_DIR}/Pulumi.yaml not found. Run this from the repository root.",
            file=sys.stderr,
        )
        sys.exit(1)


def _select_stack(stack: str, region: str, env: dict[str, str]) -> None:
    """Select the stack, creating it with the KMS secrets provider on first use."""
    select = _run(_pulumi("stack", "select", stack), env=env, check=False)
    if select.returncode != 0:
        kms = KMS_SECRETS_PROVIDER_TEMPLATE.format(region=region)
        _run(_pulumi("stack", "init", stack, "--secrets-provider", kms), env=env)
    _run(_pulumi("config", "set", "aws:region", region), env=env)


def _stack_output(name: str, env: dict[str, str]) -> str | None:
    result = _run(_pulumi("stack", "output", name), env=env, check=False, capture=True)
    if result.returncode != 0:
        return None
    value = result.stdout.strip()
    return value or None


# --- setup ---


def _cmd_setup() -> None:
    print("First-time setup. You will need:")
    print("  1) AWS credentials (e.g. run: aws sso login)")
    print("  2) S3 URI for infrastructure state (e.g. s3://your-account-pulumi-backend-software)")
    print("  3) Default AWS region (e.g. us-west-2)")
    print()

    if not _check_aws_credentials():
        print("AWS credentials not found. Log in (e.g. aws sso login) and try again.", file=sys.stderr)
        sys.exit(1)
    print("AWS credentials OK.")

    backend_url = os.environ.get("INFRA_BACKEND_URL", "").strip()
    if not backend_url:
        backend_url = input("S3 URI for infrastructure state: ").strip()
    if not backend_url:
        print("Backend URL is required.", file=sys.stderr)
        sys.exit(1)

    region = os.environ.get("INFRA_REGION", "").strip()
    if not region:
        region = input("Default AWS region (e.g. us-west-2): ").strip()
    if not region:
        print("Region is required.", file=sys.stderr)
        sys.exit(1)

    stack_prefix = os.environ.get("INFRA_STACK_PREFIX", DEFAULT_STACK_PREFIX).strip() or DEFAULT_STACK_PREFIX
    _save_config(backend_url, region, stack_prefix)
    print("Setup complete. You can now use: infra list, infra create <path>, infra destroy <service-name>")


# --- list ---


def _cmd_list() -> None:
    import boto3

    config = _load_config()
    region = config.get("region") if config else os.environ.get("AWS_REGION", "us-west-2")
    client = boto3.client("resourcegroupstaggingapi", region_name=region)
    services: dict[str, list[dict[str, str]]] = {}

    paginator = client.get_paginator("get_resources")
    for page in paginator.paginate(
        TagFilters=[{"Key": TAG_MANAGED, "Values": ["true"]}],
        ResourcesPerPage=100,
    ):
        for r in page.get("ResourceTagList", []):
            arn = r.get("ResourceARN", "")
            tags = {t["Key"]: t["Value"] for t in r.get("Tags", [])}
            svc = tags.get(TAG_SERVICE, "?")
            resource_type = arn.split(":")[2] if ":" in arn else "resource"
            services.setdefault(svc, []).append({"arn": arn, "type": resource_type})

    if not services:
        print("No platform-engine-managed resources found.")
        return
    for name in sorted(services.keys()):
        print(f"\n{name}")
        for r in services[name]:
            print(f"  {r['type']}: {r['arn']}")


# --- image / redeploy / invalidation (after pulumi up) ---


def _push_image(source_dir: Path, repository_uri: str, region: str) -> str:
    """Build compute.source and push it as <repository>:latest."""
    import boto3

    ecr = boto3.client("ecr", region_name=region)
    auth = ecr.get_authorization_token()["authorizationData"][0]
    username, password = base64.b64decode(auth["authorizationToken"]).decode().split(":", 1)
    registry = repository_uri.split("/", 1)[0]
    image = f"{repository_uri}:latest"

    print(f"Building image {image} from {source_dir}...")
    _run(
        ["docker", "login", "--username", username, "--password-stdin", registry],
        input_text=password,
    )
    _run(["docker", "build", "--platform", "linux/amd64", "-t", image, str(source_dir)])
    _run(["docker", "push", image])
    return image


def _redeploy_service(cluster: str, service: str, region: str) -> None:
    import boto3

    ecs = boto3.client("ecs", region_name=region)
    ecs.update_service(cluster=cluster, service=service, forceNewDeployment=True)
    print(f"Redeploying ECS service {service}...")


def _invalidate_distribution(distribution_id: str, region: str, reference: str) -> None:
    import boto3

    cloudfront = boto3.client("cloudfront", region_name=region)
    cloudfront.create_invalidation(
        DistributionId=distribution_id,
        InvalidationBatch={
            "Paths": {"Quantity": 1, "Items": ["/*"]},
            "CallerReference": reference,
        },
    )
    print(f"Invalidated CloudFront distribution {distribution_id}.")


# --- preview / create ---


def _cmd_preview(platform_yaml_path: str) -> None:
    config = _require_config()
    path = _resolve_yaml_path(platform_yaml_path)
    service_name = _read_platform_yaml(path)["metadata"]["name"]
    _require_program_dir()
    env = {
        "PLATFORM_YAML_PATH": str(path),
        "PULUMI_BACKEND_URL": config["backend_url"],
    }
    _select_stack(_stack_name(service_name, config), config["region"], env)
    _run(_pulumi("preview"), env=env)


def _cmd_create(platform_yaml_path: str) -> None:
    config = _require_config()
    path = _resolve_yaml_path(platform_yaml_path)
    platform = _read_platform_yaml(path)
    service_name = platform["metadata"]["name"]
    spec = platform.get("spec") or {}
    region = config["region"]
    _require_program_dir()

    env = {
        "PLATFORM_YAML_PATH": str(path),
        "PULUMI_BACKEND_URL": config["backend_url"],
    }
    stack = _stack_name(service_name, config)
    _select_stack(stack, region, env)
    print(f"Provisioning infrastructure for '{service_name}'...")
    _run(_pulumi("up", "-y"), env=env)

    compute = spec.get("compute")
    if compute:
        repository_uri = _stack_output("ecr_repository_uri", env)
        if not repository_uri:
            print("Stack has no ecr_repository_uri output; skipping image push.", file=sys.stderr)
            sys.exit(1)
        _push_image((path.parent / compute["source"]).resolve(), repository_uri, region)
        cluster = _stack_output("ecs_cluster_name", env)
        service = _stack_output("ecs_service_name", env)
        if cluster and service:
            _redeploy_service(cluster, service, region)

    if spec.get("frontend"):
        distribution_id = _stack_output("frontend_distribution_id", env)
        if distribution_id:
            _invalidate_distribution(distribution_id, region, f"{stack}-{os.getpid()}")

    for output in ("backend_domain_url", "frontend_url"):
        url = _stack_output(output, env)
        if url:
            print(f"{output}: {url}")
    print(f"Stack '{stack}' provisioned.")


# --- destroy ---


def _cmd_destroy(service_name: str) -> None:
    config = _require_config()
    stack = _stack_name(service_name, config)
    _require_program_dir()

    env = {"PULUMI_BACKEND_URL": config["backend_url"]}
    select = _run(_pulumi("stack", "select", stack), env=env, check=False)
    if select.returncode != 0:
        print(f"No infrastructure found for '{service_name}' (stack {stack}).", file=sys.stderr)
        sys.exit(1)
    confirm = input(f"This will remove all infrastructure for '{service_name}'. Continue? [y/N]: ")
    if confirm.strip().lower() != "y":
        print("Cancelled.")
        sys.exit(0)
    _run(_pulumi("destroy", "-y"), env=env)
    rm = _run(_pulumi("stack", "rm", stack, "--yes"), env=env, check=False)
    if rm.returncode != 0:
        print(f"Stack {stack} could not be removed; it may already be gone.", file=sys.stderr)
    print(f"'{service_name}' removed.")


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        description="Manage stack infrastructure (list, preview, create, destroy). Run 'infra setup' first."
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("setup", help="One-time setup: AWS, state storage, region")
    sub.add_parser("list", help="List engine-managed resources by service")
    preview_p = sub.add_parser("preview", help="Show the changes a platform.yaml would make")
    preview_p.add_argument("platform_yaml", help="Path to platform.yaml")
    create_p = sub.add_parser("create", help="Provision infrastructure from a platform.yaml")
    create_p.add_argument("platform_yaml", help="Path to platform.yaml (file or fixture)")
    destroy_p = sub.add_parser("destroy", help="Remove all infrastructure for a stack")
    destroy_p.add_argument("service_name", help="Stack name (from platform.yaml metadata.name)")
    args = parser.parse_args()

    try:
        if args.command == "setup":
            _cmd_setup()
        elif args.command == "list":
            _cmd_list()
        elif args.command == "preview":
            _cmd_preview(args.platform_yaml)
        elif args.command == "create":
            _cmd_create(args.platform_yaml)
        elif args.command == "destroy":
            _cmd_destroy(args.service_name)
        else:
            parser.print_help()
            sys.exit(1)
    except subprocess.CalledProcessError as e:
        print(f"Command failed ({e.returncode}): {' '.join(map(str, e.cmd))}", file=sys.stderr)
        sys.exit(e.returncode or 1)


if __name__ == "__main__":
    main()
