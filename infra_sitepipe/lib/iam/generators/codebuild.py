from infra_sitepipe.lib.config.settings import ProviderSettings
from infra_sitepipe.lib.graph.types import Reference
from ..compose import Requirement, compose_policy
from ..identity import Identity
from ..resource_interpolator import interpolate_resource
from ..types import ServiceTrustStatement
from .artifacts import ARTIFACT_OBJECTS

BUILD_TRUSTED_SERVICE = "codebuild.amazonaws.com"

BUILD_OBJECT_ACTIONS = frozenset({"s3:PutObject", "s3:GetObject", "s3:GetObjectVersion", "s3:DeleteObject"})
BUILD_BUCKET_ACTIONS = frozenset({"s3:ListBucket", "s3:ListBucketMultipartUploads"})
BUILD_ARTIFACT_ACTIONS = frozenset({"s3:PutObject", "s3:GetObject", "s3:GetObjectVersion"})
BUILD_LOG_ACTIONS = frozenset({"logs:CreateLogGroup", "logs:CreateLogStream", "logs:PutLogEvents"})
BUILD_REPORT_ACTIONS = frozenset(
    {"codebuild:CreateReportGroup", "codebuild:CreateReport", "codebuild:UpdateReport", "codebuild:BatchPutTestCases"}
)

BUILD_REQUIRED_ACTIONS = BUILD_OBJECT_ACTIONS | BUILD_BUCKET_ACTIONS | BUILD_LOG_ACTIONS | BUILD_REPORT_ACTIONS
"""Everything the build stage does: sync the site, write its logs, publish its reports"""


def build_log_group_name(project_name: str) -> str:
    """CloudWatch log group CodeBuild writes to for a project"""
    return f"/aws/codebuild/{project_name}"


def generate_build_requirements(settings: ProviderSettings, site_bucket: str, project_name: str) -> list[Requirement]:
    """
    Requirements of the build identity.

    The log group and report groups are created by CodeBuild on first use, so they are addressed through their
    naming convention rather than by reference.

    :param settings: Provider settings to interpolate ARNs with
    :param site_bucket: Logical name of the site bucket
    :param project_name: Name of the CodeBuild project
    :return: List of requirements
    """
    log_group = "arn:{partition}:logs:{region}:{aws_account_id}:log-group:" + build_log_group_name(project_name)
    report_groups = "arn:{partition}:codebuild:{region}:{aws_account_id}:report-group/" + project_name + "-*"

    return [
        Requirement(BUILD_OBJECT_ACTIONS, [Reference(site_bucket, "arn", suffix="/*")]),
        Requirement(BUILD_ARTIFACT_ACTIONS, [interpolate_resource(settings, ARTIFACT_OBJECTS)]),
        Requirement(BUILD_BUCKET_ACTIONS, [Reference(site_bucket, "arn")]),
        Requirement(
            BUILD_LOG_ACTIONS,
            [interpolate_resource(settings, log_group), interpolate_resource(settings, log_group + ":*")],
        ),
        Requirement(BUILD_REPORT_ACTIONS, [interpolate_resource(settings, report_groups)]),
    ]


def generate_build_identity(
    settings: ProviderSettings, name: str, site_bucket: str, project_name: str, tags: dict = None
) -> Identity:
    """
    Declare the identity CodeBuild assumes while building the site.

    :param settings: Provider settings
    :param name: Logical name of the role
    :param site_bucket: Logical name of the site bucket
    :param project_name: Name of the CodeBuild project
    :param tags: Role tags
    :return: An active Identity
    """
    return (
        Identity(name, tags)
        .bind_trust(ServiceTrustStatement(BUILD_TRUSTED_SERVICE))
        .bind_policy(compose_policy(f"{name}-policy", generate_build_requirements(settings, site_bucket, project_name)))
        .activate()
    )
