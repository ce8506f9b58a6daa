from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class ResourceType(Enum):
    """Type tag of a declared resource. Values are the Pulumi type tokens the materializer hands resources to."""

    BUCKET = "aws:s3/bucketV2:BucketV2"
    BUCKET_WEBSITE = "aws:s3/bucketWebsiteConfigurationV2:BucketWebsiteConfigurationV2"
    BUCKET_PUBLIC_ACCESS_BLOCK = "aws:s3/bucketPublicAccessBlock:BucketPublicAccessBlock"
    BUCKET_OWNERSHIP_CONTROLS = "aws:s3/bucketOwnershipControls:BucketOwnershipControls"
    BUCKET_ACL = "aws:s3/bucketAclV2:BucketAclV2"
    BUCKET_POLICY = "aws:s3/bucketPolicy:BucketPolicy"
    ROLE = "aws:iam/role:Role"
    ROLE_POLICY = "aws:iam/rolePolicy:RolePolicy"
    BUILD_PROJECT = "aws:codebuild/project:Project"
    PIPELINE = "aws:codepipeline/pipeline:Pipeline"

    @property
    def service(self) -> str:
        """IAM service namespace of this type's ARNs"""
        return self.value.split(":")[1].split("/")[0]

    @property
    def outputs(self) -> tuple[str, ...]:
        """Attributes that become resolvable once a resource of this type is materialized"""
        return _OUTPUTS.get(self, ("id",))


_OUTPUTS = {
    ResourceType.BUCKET: ("id", "arn", "bucket", "bucket_regional_domain_name"),
    ResourceType.BUCKET_WEBSITE: ("id", "website_endpoint", "website_domain"),
    ResourceType.ROLE: ("id", "arn", "name"),
    ResourceType.BUILD_PROJECT: ("id", "arn", "name"),
    ResourceType.PIPELINE: ("id", "arn", "name"),
}


@dataclass(frozen=True)
class Reference:
    """
    A dependency edge onto another resource's computed attribute.

    The value is only known once ``target`` is materialized. ``prefix`` and ``suffix`` are concatenated around it,
    which covers the usual ``arn + "/*"`` and ``"http://" + endpoint`` compositions.
    """

    target: str
    attribute: str
    prefix: str = ""
    suffix: str = ""

    def __str__(self):
        return f"{self.prefix}${{{self.target}.{self.attribute}}}{self.suffix}"


class Document:
    """A structured value (a policy document or statement) that renders to plain dicts before resolution"""

    def to_dict(self) -> dict:
        raise NotImplementedError


@dataclass
class Resource:
    name: str
    """Stable logical name, unique in a plan"""

    type: ResourceType
    """Type tag"""

    config: dict[str, Any] = field(default_factory=dict)
    """
    Configuration keys and values handed to the engine. Values may nest ``Reference``s and ``Document``s;
    documents are expanded before resolution. Anything else, engine values included, passes through untouched.
    """

    depends_on: list[str] = field(default_factory=list)
    """Explicit ordering edges for dependencies that carry no value"""

    @property
    def outputs(self) -> tuple[str, ...]:
        return self.type.outputs

    def references(self) -> list[Reference]:
        return list(iter_references(self.config))

    def dependencies(self) -> list[str]:
        """Names of every resource this one must follow, references first, without duplicates"""
        names = [ref.target for ref in self.references()] + list(self.depends_on)
        return list(dict.fromkeys(names))


def expand(value: Any) -> Any:
    """Expand documents into plain structures, leaving references in place"""
    if isinstance(value, Document):
        return expand(value.to_dict())
    elif isinstance(value, dict):
        return {k: expand(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [expand(v) for v in value]
    else:
        return value


def iter_references(value: Any) -> Iterator[Reference]:
    if isinstance(value, Reference):
        yield value
    elif isinstance(value, Document):
        yield from iter_references(value.to_dict())
    elif isinstance(value, dict):
        for v in value.values():
            yield from iter_references(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from iter_references(v)
