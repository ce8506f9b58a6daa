from typing import Any, Mapping

from pulumi import Output, Resource as PulumiResource, ResourceOptions, log
from pulumi_aws import codebuild, codepipeline, iam, s3

from infra_sitepipe.lib.base import MaterializationError
from infra_sitepipe.lib.graph.materializer import Materializer
from infra_sitepipe.lib.graph.types import Resource, ResourceType

RESOURCE_CLASSES = {
    ResourceType.BUCKET: s3.BucketV2,
    ResourceType.BUCKET_WEBSITE: s3.BucketWebsiteConfigurationV2,
    ResourceType.BUCKET_PUBLIC_ACCESS_BLOCK: s3.BucketPublicAccessBlock,
    ResourceType.BUCKET_OWNERSHIP_CONTROLS: s3.BucketOwnershipControls,
    ResourceType.BUCKET_ACL: s3.BucketAclV2,
    ResourceType.BUCKET_POLICY: s3.BucketPolicy,
    ResourceType.ROLE: iam.Role,
    ResourceType.ROLE_POLICY: iam.RolePolicy,
    ResourceType.BUILD_PROJECT: codebuild.Project,
    ResourceType.PIPELINE: codepipeline.Pipeline,
}

DOCUMENT_INPUTS = ("policy", "assume_role_policy")
"""Inputs Pulumi expects as JSON strings"""


class _OutputAttributes(Mapping[str, Any]):
    """A materialized resource's attributes, read lazily off the Pulumi resource as Outputs"""

    def __init__(self, resource: Resource, pulumi_resource: PulumiResource):
        self._outputs = resource.outputs
        self.pulumi_resource = pulumi_resource

    def __getitem__(self, attribute: str) -> Output:
        if attribute not in self._outputs:
            raise KeyError(attribute)
        return getattr(self.pulumi_resource, attribute)

    def __iter__(self):
        return iter(self._outputs)

    def __len__(self):
        return len(self._outputs)


class PulumiMaterializer(Materializer):
    """
    Hands resolved resources to Pulumi.

    Pulumi is the engine that reconciles against AWS: it diffs against its own state, so every resource is
    registered through ``create`` on each run. Resolved references are ``Output``s, which also carry the dependency
    edges to Pulumi; explicit ``depends_on`` names are forwarded as ``ResourceOptions.depends_on``.
    """

    def __init__(self, parent: PulumiResource):
        self.parent = parent
        self.resources: dict[str, PulumiResource] = {}

    def create(self, resource: Resource, inputs: dict) -> Mapping[str, Any]:
        try:
            resource_cls = RESOURCE_CLASSES[resource.type]
        except KeyError as e:
            raise MaterializationError(resource.name, f"no Pulumi resource for `{resource.type.value}`") from e

        args = {k: Output.json_dumps(v) if k in DOCUMENT_INPUTS else v for k, v in inputs.items()}

        log.debug(f"registering {resource.type.value} `{resource.name}`")

        pulumi_resource = resource_cls(
            resource.name,
            **args,
            opts=ResourceOptions(
                parent=self.parent,
                depends_on=[self.resources[name] for name in resource.depends_on],
            ),
        )
        self.resources[resource.name] = pulumi_resource

        return _OutputAttributes(resource, pulumi_resource)

    def update(self, resource: Resource, inputs: dict, attributes: Mapping[str, Any]) -> Mapping[str, Any]:
        # Pulumi keeps its own state; a program run always registers the full desired graph
        return self.create(resource, inputs)

    def delete(self, name: str, attributes: Mapping[str, Any]) -> None:
        # resources left out of a program run are deleted by the Pulumi engine itself
        log.debug(f"`{name}` left to the Pulumi engine for deletion")

    def join(self, parts: list[Any]) -> Output[str]:
        return Output.concat(*parts)
