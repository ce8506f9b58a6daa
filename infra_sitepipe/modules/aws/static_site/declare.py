from dataclasses import dataclass
from typing import Any, Callable, Optional

from infra_sitepipe.lib.base import ConfigurationError
from infra_sitepipe.lib.config.settings import ProviderSettings
from infra_sitepipe.lib.graph import Plan, Reference, Resource, ResourceType
from infra_sitepipe.lib.iam.generators import (
    ARTIFACT_BUCKET_PREFIX,
    build_log_group_name,
    generate_build_identity,
    generate_pipeline_identity,
    generate_public_read_policy,
)
from infra_sitepipe.lib.s3.website import website_url
from .config import StaticSiteArgs, WebsiteArgs
from .types import PublicReadMechanism

TagsFor = Callable[[str], dict]
"""Maps a resource role (``bucket``, ``build-role``, ...) onto the tags of that resource"""


@dataclass(frozen=True)
class SiteNames:
    """Logical names of every resource of a site"""

    site: str

    @property
    def bucket(self):
        return f"{self.site}-bucket"

    @property
    def website(self):
        return f"{self.site}-website"

    @property
    def public_access_block(self):
        return f"{self.site}-public-access-block"

    @property
    def ownership_controls(self):
        return f"{self.site}-ownership-controls"

    @property
    def acl(self):
        return f"{self.site}-acl"

    @property
    def bucket_policy(self):
        return f"{self.site}-bucket-policy"

    @property
    def build_role(self):
        return f"{self.site}-build-role"

    @property
    def build_project(self):
        return f"{self.site}-build"

    @property
    def pipeline_role(self):
        return f"{self.site}-pipeline-role"

    @property
    def pipeline(self):
        return f"{self.site}-pipeline"


def _no_tags(_: str) -> dict:
    return {}


def _declare_bucket(plan: Plan, names: SiteNames, bucket_name: str, website: WebsiteArgs, tags_for: TagsFor) -> None:
    if not website.index_document:
        raise ConfigurationError("website hosting needs an index document")

    plan.add(Resource(names.bucket, ResourceType.BUCKET, {"bucket": bucket_name, "tags": tags_for("bucket")}))

    website_config = {
        "bucket": Reference(names.bucket, "id"),
        "index_document": {"suffix": website.index_document},
    }
    if website.error_document:
        website_config["error_document"] = {"key": website.error_document}

    plan.add(Resource(names.website, ResourceType.BUCKET_WEBSITE, website_config))


def _declare_public_read(plan: Plan, names: SiteNames, mechanism: PublicReadMechanism) -> None:
    """
    Declare the public access block and at most one public-read grant.

    The block is always declared and only relaxed for the chosen grant, so dropping a grant updates the block in
    place. Deleting the block instead would clear the bucket's blocking configuration and leave objects deployed
    with a public-read ACL readable.
    """
    bucket_id = Reference(names.bucket, "id")
    by_acl = mechanism == PublicReadMechanism.ACL
    by_policy = mechanism == PublicReadMechanism.POLICY

    plan.add(
        Resource(
            names.public_access_block,
            ResourceType.BUCKET_PUBLIC_ACCESS_BLOCK,
            {
                "bucket": bucket_id,
                "block_public_acls": not by_acl,
                "ignore_public_acls": not by_acl,
                "block_public_policy": not by_policy,
                "restrict_public_buckets": not by_policy,
            },
        )
    )

    if by_acl:
        plan.add(
            Resource(
                names.ownership_controls,
                ResourceType.BUCKET_OWNERSHIP_CONTROLS,
                {"bucket": bucket_id, "rule": {"object_ownership": "BucketOwnerPreferred"}},
            )
        )
        plan.add(
            Resource(
                names.acl,
                ResourceType.BUCKET_ACL,
                {"bucket": bucket_id, "acl": "public-read"},
                depends_on=[names.public_access_block, names.ownership_controls],
            )
        )
    elif by_policy:
        plan.add(
            Resource(
                names.bucket_policy,
                ResourceType.BUCKET_POLICY,
                {"bucket": bucket_id, "policy": generate_public_read_policy(names.bucket)},
                depends_on=[names.public_access_block],
            )
        )


def _pipeline_stages(names: SiteNames, args: StaticSiteArgs, github_token: Any) -> list[dict]:
    source = args.pipeline.source
    deploy_configuration = {"BucketName": Reference(names.bucket, "bucket"), "Extract": "true"}
    if args.public_read == PublicReadMechanism.ACL:
        deploy_configuration["CannedACL"] = "public-read"

    return [
        {
            "name": "Source",
            "actions": [
                {
                    "name": "Source",
                    "category": "Source",
                    "owner": "ThirdParty",
                    "provider": "GitHub",
                    "version": "1",
                    "output_artifacts": ["source"],
                    "configuration": {
                        "Owner": source.owner,
                        "Repo": source.repo,
                        "Branch": source.branch,
                        "OAuthToken": github_token,
                    },
                }
            ],
        },
        {
            "name": "Build",
            "actions": [
                {
                    "name": "Build",
                    "category": "Build",
                    "owner": "AWS",
                    "provider": "CodeBuild",
                    "version": "1",
                    "input_artifacts": ["source"],
                    "output_artifacts": ["site"],
                    "configuration": {"ProjectName": Reference(names.build_project, "name")},
                }
            ],
        },
        {
            "name": "Deploy",
            "actions": [
                {
                    "name": "Deploy",
                    "category": "Deploy",
                    "owner": "AWS",
                    "provider": "S3",
                    "version": "1",
                    "input_artifacts": ["site"],
                    "configuration": deploy_configuration,
                }
            ],
        },
    ]


def declare_static_site(
    args: StaticSiteArgs,
    settings: ProviderSettings,
    bucket_name: str,
    github_token: Any = None,
    tags_for: Optional[TagsFor] = None,
) -> Plan:
    """
    Declare the resource graph of a static site and its delivery pipeline.

    Nothing is created here; the returned plan is handed to a ``Resolver``.

    :param args: Site configuration
    :param settings: Provider settings ARNs are interpolated with
    :param bucket_name: Physical name of the site bucket
    :param github_token: OAuth token of the source action, usually a secret Output
    :param tags_for: Tags per resource role
    :return: The plan
    """
    tags_for = tags_for or _no_tags
    names = SiteNames(args.name)
    pipeline = args.pipeline

    artifact_prefix = ARTIFACT_BUCKET_PREFIX.format(region=settings.region)
    if not pipeline.artifact_bucket.startswith(artifact_prefix):
        raise ConfigurationError(
            f"artifact bucket `{pipeline.artifact_bucket}` must start with `{artifact_prefix}`, "
            "the pipeline roles are scoped to that prefix"
        )

    plan = Plan(settings)

    _declare_bucket(plan, names, bucket_name, args.website, tags_for)
    _declare_public_read(plan, names, args.public_read)

    build_identity = generate_build_identity(
        settings, names.build_role, names.bucket, names.build_project, tags_for("build-role")
    )
    for resource in build_identity.to_resources():
        plan.add(resource)

    plan.add(
        Resource(
            names.build_project,
            ResourceType.BUILD_PROJECT,
            {
                "name": names.build_project,
                "service_role": build_identity.arn,
                "build_timeout": pipeline.build.timeout_minutes,
                "artifacts": {"type": "CODEPIPELINE"},
                "source": {"type": "CODEPIPELINE", "buildspec": pipeline.build.buildspec},
                "environment": {
                    "compute_type": pipeline.build.compute_type.value,
                    "image": pipeline.build.image,
                    "type": "LINUX_CONTAINER",
                    "environment_variables": [{"name": "SITE_BUCKET", "value": Reference(names.bucket, "bucket")}],
                },
                "logs_config": {"cloudwatch_logs": {"group_name": build_log_group_name(names.build_project)}},
                "tags": tags_for("build"),
            },
            # CodeBuild rejects a service role that cannot yet write its logs
            depends_on=[build_identity.policy_resource_name],
        )
    )

    pipeline_identity = generate_pipeline_identity(
        settings, names.pipeline_role, names.bucket, names.build_project, tags_for("pipeline-role")
    )
    for resource in pipeline_identity.to_resources():
        plan.add(resource)

    plan.add(
        Resource(
            names.pipeline,
            ResourceType.PIPELINE,
            {
                "name": names.pipeline,
                "role_arn": pipeline_identity.arn,
                "artifact_stores": [{"location": pipeline.artifact_bucket, "type": "S3"}],
                "stages": _pipeline_stages(names, args, github_token),
                "tags": tags_for("pipeline"),
            },
            depends_on=[pipeline_identity.policy_resource_name],
        )
    )

    plan.export("website_url", website_url(names.website))
    plan.export("bucket", Reference(names.bucket, "bucket"))
    plan.export("build_role_arn", build_identity.arn)
    plan.export("pipeline_role_arn", pipeline_identity.arn)

    return plan
