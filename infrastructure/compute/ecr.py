"""ECR repository for the backend image, with a lifecycle policy."""

import json

import pulumi
import pulumi_aws

KEEP_IMAGES = 5


def _lifecycle_policy(keep: int) -> str:
    return json.dumps(
        {
            "rules": [
                {
                    "rulePriority": 1,
                    "description": f"Keep last {keep} images",
                    "selection": {
                        "tagStatus": "any",
                        "countType": "imageCountMoreThan",
                        "countNumber": keep,
                    },
                    "action": {"type": "expire"},
                }
            ],
        }
    )


def create_ecr_repository(
    service_name: str,
    aws_provider: pulumi_aws.Provider,
) -> pulumi_aws.ecr.Repository:
    """Create the repository the CLI pushes the compute source image to.

    force_delete lets `infra destroy` remove the repository with images in it.
    """
    ecr_repo = pulumi_aws.ecr.Repository(
        f"{service_name}_ecr",
        name=service_name,
        image_tag_mutability="MUTABLE",
        force_delete=True,
        image_scanning_configuration=pulumi_aws.ecr.RepositoryImageScanningConfigurationArgs(
            scan_on_push=True,
        ),
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )
    pulumi_aws.ecr.LifecyclePolicy(
        f"{service_name}_ecr_lifecycle",
        repository=ecr_repo.name,
        policy=_lifecycle_policy(KEEP_IMAGES),
        opts=pulumi.ResourceOptions(provider=aws_provider),
    )
    return ecr_repo
