from infra_sitepipe.lib.config.settings import ProviderSettings
from infra_sitepipe.lib.graph.types import Reference
from ..compose import Requirement, compose_policy
from ..identity import Identity
from ..resource_interpolator import interpolate_resource
from ..types import ServiceTrustStatement
from .artifacts import ARTIFACT_BUCKETS, ARTIFACT_OBJECTS

PIPELINE_TRUSTED_SERVICE = "codepipeline.amazonaws.com"

PIPELINE_OBJECT_ACTIONS = frozenset({"s3:GetObject", "s3:GetObjectVersion", "s3:PutObject", "s3:PutObjectAcl"})
PIPELINE_BUCKET_ACTIONS = frozenset({"s3:GetBucketVersioning"})
PIPELINE_BUILD_ACTIONS = frozenset({"codebuild:StartBuild", "codebuild:StopBuild", "codebuild:BatchGetBuilds"})

PIPELINE_REQUIRED_ACTIONS = PIPELINE_OBJECT_ACTIONS | PIPELINE_BUCKET_ACTIONS | PIPELINE_BUILD_ACTIONS
"""Everything the orchestration does: move artifacts, deploy to the site, drive the build"""


def generate_pipeline_requirements(
    settings: ProviderSettings, site_bucket: str, build_project: str
) -> list[Requirement]:
    """
    Requirements of the pipeline identity.

    :param settings: Provider settings to interpolate ARNs with
    :param site_bucket: Logical name of the site bucket the deploy stage writes to
    :param build_project: Logical name of the CodeBuild project the build stage runs
    :return: List of requirements
    """
    return [
        Requirement(
            PIPELINE_OBJECT_ACTIONS,
            [interpolate_resource(settings, ARTIFACT_OBJECTS), Reference(site_bucket, "arn", suffix="/*")],
        ),
        Requirement(
            PIPELINE_BUCKET_ACTIONS,
            [interpolate_resource(settings, ARTIFACT_BUCKETS), Reference(site_bucket, "arn")],
        ),
        Requirement(PIPELINE_BUILD_ACTIONS, [Reference(build_project, "arn")]),
    ]


def generate_pipeline_identity(
    settings: ProviderSettings, name: str, site_bucket: str, build_project: str, tags: dict = None
) -> Identity:
    """
    Declare the identity CodePipeline assumes while orchestrating the build and deploy stages.

    :param settings: Provider settings
    :param name: Logical name of the role
    :param site_bucket: Logical name of the site bucket
    :param build_project: Logical name of the CodeBuild project
    :param tags: Role tags
    :return: An active Identity
    """
    return (
        Identity(name, tags)
        .bind_trust(ServiceTrustStatement(PIPELINE_TRUSTED_SERVICE))
        .bind_policy(
            compose_policy(f"{name}-policy", generate_pipeline_requirements(settings, site_bucket, build_project))
        )
        .activate()
    )
