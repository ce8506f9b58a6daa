from typing import Any, Mapping

import pytest

from infra_sitepipe.lib.base import MaterializationError
from infra_sitepipe.lib.config import get_sitepipe_env, get_sysenv
from infra_sitepipe.lib.config.settings import ProviderSettings
from infra_sitepipe.lib.graph.materializer import Materializer
from infra_sitepipe.lib.graph.types import Resource, ResourceType
from infra_sitepipe.modules.aws.static_site.config import PipelineArgs, SourceArgs, StaticSiteArgs

SITEPIPE_YAML = """\
namespace: sp
sysenv: sp-aws-us-west-2-sandbox-dev
purpose: sandbox
phase: dev
team: web
"""


_DASH_REGIONS = frozenset(
    {
        "us-east-1",
        "us-west-1",
        "us-west-2",
        "ap-southeast-1",
        "ap-southeast-2",
        "ap-northeast-1",
        "eu-west-1",
        "sa-east-1",
        "us-gov-west-1",
    }
)
"""Regions whose website endpoint is `s3-website-<region>`; newer ones use `s3-website.<region>`"""


def website_endpoint(bucket: str, region: str) -> str:
    separator = "-" if region in _DASH_REGIONS else "."
    return f"{bucket}.s3-website{separator}{region}.amazonaws.com"


class FakeCloud(Materializer):
    """In-memory engine: records every call, derives attributes the way AWS names things, fails on demand."""

    def __init__(self, settings: ProviderSettings, fail: set[str] = None):
        self.settings = settings
        self.fail = set(fail or ())
        self.calls: list[tuple[str, str]] = []
        self.resources: dict[str, dict] = {}

    def _attributes(self, resource: Resource, inputs: dict) -> dict:
        s = self.settings
        name = resource.name
        if resource.type == ResourceType.BUCKET:
            bucket = inputs["bucket"]
            return {
                "id": bucket,
                "bucket": bucket,
                "arn": f"arn:{s.partition}:s3:::{bucket}",
                "bucket_regional_domain_name": f"{bucket}.s3.{s.region}.amazonaws.com",
            }
        if resource.type == ResourceType.BUCKET_WEBSITE:
            endpoint = website_endpoint(inputs["bucket"], s.region)
            return {"id": inputs["bucket"], "website_endpoint": endpoint, "website_domain": endpoint.split(".", 1)[1]}
        if resource.type == ResourceType.ROLE:
            return {"id": name, "name": name, "arn": f"arn:{s.partition}:iam::{s.aws_account_id}:role/{name}"}
        if resource.type == ResourceType.BUILD_PROJECT:
            project = inputs["name"]
            arn = f"arn:{s.partition}:codebuild:{s.region}:{s.aws_account_id}:project/{project}"
            return {"id": arn, "name": project, "arn": arn}
        if resource.type == ResourceType.PIPELINE:
            pipeline = inputs["name"]
            return {"id": pipeline, "name": pipeline, "arn": f"arn:{s.partition}:codepipeline:{s.region}:{s.aws_account_id}:{pipeline}"}
        return {"id": f"{name}-id"}

    def create(self, resource: Resource, inputs: dict) -> Mapping[str, Any]:
        self.calls.append(("create", resource.name))
        if resource.name in self.fail:
            raise MaterializationError(resource.name, "LimitExceeded")
        self.resources[resource.name] = inputs
        return self._attributes(resource, inputs)

    def update(self, resource: Resource, inputs: dict, attributes: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append(("update", resource.name))
        self.resources[resource.name] = inputs
        return self._attributes(resource, inputs)

    def delete(self, name: str, attributes: Mapping[str, Any]) -> None:
        self.calls.append(("delete", name))
        if name in self.fail:
            raise MaterializationError(name, "DeleteConflict")
        del self.resources[name]


@pytest.fixture(autouse=True)
def sitepipe_env(tmp_path, monkeypatch):
    (tmp_path / "Sitepipe.common.yaml").write_text(SITEPIPE_YAML)
    monkeypatch.setenv("SITEPIPE_ROOT", str(tmp_path))
    get_sitepipe_env.reset()
    get_sysenv.reset()
    yield tmp_path
    get_sitepipe_env.reset()
    get_sysenv.reset()


@pytest.fixture
def settings():
    return ProviderSettings(region="us-west-2", aws_account_id="123456789012")


@pytest.fixture
def cloud(settings):
    return FakeCloud(settings)


@pytest.fixture
def site_args():
    return StaticSiteArgs(
        name="docs",
        pipeline=PipelineArgs(
            artifact_bucket="codepipeline-us-west-2-docs",
            source=SourceArgs(owner="acme", repo="docs-site"),
        ),
    )
