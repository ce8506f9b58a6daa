from dataclasses import dataclass, field
from typing import Optional

from pulumi import Output

from .types import ComputeType, PublicReadMechanism


@dataclass
class WebsiteArgs:
    index_document: str = "index.html"
    """Object served for requests on a directory, including the site root"""

    error_document: Optional[str] = "error.html"
    """Object served on 4xx errors. Set to null to let S3 serve its own error page."""


@dataclass
class SourceArgs:
    owner: str
    """GitHub owner (user or organization) of the site repository"""

    repo: str
    """GitHub repository name"""

    branch: str = "main"
    """Branch whose pushes trigger the pipeline"""


@dataclass
class BuildArgs:
    image: str = "aws/codebuild/standard:7.0"
    """CodeBuild image"""

    compute_type: ComputeType = ComputeType.SMALL
    """CodeBuild compute size"""

    buildspec: str = "buildspec.yml"
    """Path of the buildspec inside the repository"""

    timeout_minutes: int = 10
    """Build timeout"""


@dataclass
class PipelineArgs:
    artifact_bucket: str
    """
    Artifact store of the pipeline. Must follow the CodePipeline naming convention ``codepipeline-<region>-...``,
    which is what the pipeline and build roles are scoped to.
    """

    source: SourceArgs
    """Where the site's sources live"""

    build: BuildArgs = field(default_factory=BuildArgs)
    """How the site is built"""


@dataclass
class StaticSiteArgs:
    name: str
    """Site name, used to derive every resource name"""

    pipeline: PipelineArgs
    """Continuous delivery of the site"""

    website: WebsiteArgs = field(default_factory=WebsiteArgs)
    """Website hosting configuration"""

    public_read: PublicReadMechanism = PublicReadMechanism.POLICY
    """How the site's objects are made world-readable"""


@dataclass
class StaticSiteExports:
    website_url: Output[str]
    """Public URL of the website endpoint"""

    bucket: Output[str]
    """Site bucket name"""

    build_role_arn: Output[str]
    """ARN of the role CodeBuild assumes"""

    pipeline_role_arn: Output[str]
    """ARN of the role CodePipeline assumes"""
