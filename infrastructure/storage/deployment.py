"""Upload a local build directory into a bucket, one object per file."""

import mimetypes
from pathlib import Path

import pulumi
import pulumi_aws

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def list_assets(source_dir: Path) -> list[tuple[str, Path]]:
    """Return (key, path) for every file under source_dir, sorted by key.

    Keys are POSIX paths relative to source_dir. Hidden files are skipped.
    """
    assets = []
    for path in source_dir.rglob("*"):
        if not path.is_file():
            continue
        rel = path.relative_to(source_dir)
        if any(part.startswith(".") for part in rel.parts):
            continue
        assets.append((rel.as_posix(), path))
    return sorted(assets)


def content_type_for(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or DEFAULT_CONTENT_TYPE


def cache_control_for(key: str, index_document: str) -> str:
    """HTML entry points must revalidate; hashed build assets can be cached."""
    if key == index_document or key.endswith(".html"):
        return "no-cache"
    return "public, max-age=86400"


def upload_directory(
    service_name: str,
    bucket: pulumi_aws.s3.BucketV2,
    source_dir: Path,
    index_document: str,
    aws_provider: pulumi_aws.Provider,
    depends_on: list[pulumi.Resource] | None = None,
) -> list[pulumi_aws.s3.BucketObjectv2]:
    """Create a bucket object for each asset under source_dir.

    Raises SystemExit if source_dir is missing or empty.
    """
    if not source_dir.is_dir():
        raise SystemExit(f"frontend source directory not found: {source_dir}")
    assets = list_assets(source_dir)
    if not assets:
        raise SystemExit(f"frontend source directory is empty: {source_dir}")

    pulumi.log.info(f"Uploading {len(assets)} frontend assets from {source_dir}")
    objects = []
    for key, path in assets:
        objects.append(
            pulumi_aws.s3.BucketObjectv2(
                f"{service_name}_asset_{key}",
                bucket=bucket.id,
                key=key,
                source=pulumi.FileAsset(str(path)),
                content_type=content_type_for(key),
                cache_control=cache_control_for(key, index_document),
                opts=pulumi.ResourceOptions(provider=aws_provider, depends_on=depends_on or []),
            )
        )
    return objects
