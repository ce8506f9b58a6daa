from dataclasses import dataclass, field
from typing import ClassVar, Union

from infra_sitepipe.lib.base import PolicyValidationError
from infra_sitepipe.lib.graph.types import Document, Reference

POLICY_VERSION = "2012-10-17"

ResourceAddress = Union[str, Reference]
"""An exact ARN, a prefix-wildcard ARN, or a reference onto another resource's ARN"""

READ_VERB_PREFIXES = ("Get", "List", "Describe", "BatchGet", "Head")


def is_read_action(action: str) -> bool:
    """Whether an action (``service:Verb``) only reads"""
    _, _, verb = action.partition(":")
    return verb.startswith(READ_VERB_PREFIXES)


@dataclass(frozen=True)
class Statement(Document):
    Effect: str
    """AWS statement effect, ("Allow", "Deny")"""

    Action: tuple[str, ...]
    """AWS actions, ("s3:GetObject", "logs:PutLogEvents",...)"""

    Resource: tuple[ResourceAddress, ...]
    """
    AWS resources to apply this statement to.
    Strings are interpolated to allow access to ``partition``, ``region`` and ``aws_account_id``.

    See ``resource_interpolator.py`` for supported interpolations.
    """

    kind: ClassVar[str] = "statement"

    def __post_init__(self):
        object.__setattr__(self, "Action", tuple(self.Action))
        object.__setattr__(self, "Resource", tuple(self.Resource))

        if self.Effect not in ("Allow", "Deny"):
            raise PolicyValidationError(f"statement effect must be Allow or Deny, not `{self.Effect}`")
        if not self.Action:
            raise PolicyValidationError("statement has no actions")
        if not self.Resource:
            raise PolicyValidationError(f"statement for {list(self.Action)} has no resources")

    def to_dict(self) -> dict:
        return {
            "Effect": self.Effect,
            "Action": list(self.Action),
            "Resource": list(self.Resource),
        }


@dataclass(frozen=True)
class ReadStatement(Statement):
    """A statement whose actions all only read"""

    kind: ClassVar[str] = "read"

    def __post_init__(self):
        super().__post_init__()
        if writes := [a for a in self.Action if not is_read_action(a)]:
            raise PolicyValidationError(f"read statement carries non-read actions {writes}")


@dataclass(frozen=True)
class WriteStatement(Statement):
    """A statement carrying at least one mutating action"""

    kind: ClassVar[str] = "write"


@dataclass(frozen=True)
class PublicReadStatement(ReadStatement):
    """
    Read access for the anonymous principal. Only meaningful in a bucket policy, where it makes every matched object
    world-readable.
    """

    kind: ClassVar[str] = "public-read"

    def to_dict(self) -> dict:
        return {**super().to_dict(), "Principal": "*"}


@dataclass(frozen=True)
class ServiceTrustStatement(Document):
    """Declares the one AWS service principal allowed to assume a role"""

    Service: str
    """Service principal, e.g. ``codebuild.amazonaws.com``"""

    kind: ClassVar[str] = "trust"

    def __post_init__(self):
        if not isinstance(self.Service, str):
            raise PolicyValidationError("a trust statement must name exactly one service principal")
        if "*" in self.Service or not self.Service.endswith(".amazonaws.com"):
            raise PolicyValidationError(f"`{self.Service}` is not a service principal")

    def to_dict(self) -> dict:
        return {
            "Effect": "Allow",
            "Principal": {"Service": self.Service},
            "Action": "sts:AssumeRole",
        }


@dataclass(frozen=True)
class TrustPolicy(Document):
    """Assume-role document carrying a single service trust statement"""

    statement: ServiceTrustStatement

    def to_dict(self) -> dict:
        return {"Version": POLICY_VERSION, "Statement": [self.statement.to_dict()]}


@dataclass(frozen=True)
class PolicyDocument(Document):
    statements: tuple[Statement, ...]
    """List of statements for this document"""

    def __post_init__(self):
        object.__setattr__(self, "statements", tuple(self.statements))

    def to_dict(self) -> dict:
        return {"Version": POLICY_VERSION, "Statement": [s.to_dict() for s in self.statements]}

    def actions(self) -> set[str]:
        return {action for statement in self.statements for action in statement.Action}

    def grants(self) -> set[tuple[str, str]]:
        """Every (action, resource) pair this document allows, resources rendered with ``str``"""
        return {
            (action, str(resource))
            for statement in self.statements
            if statement.Effect == "Allow"
            for action in statement.Action
            for resource in statement.Resource
        }


@dataclass(frozen=True)
class RolePolicy(PolicyDocument):
    name: str = field(default="")
    """Name of the inline IAM policy"""
