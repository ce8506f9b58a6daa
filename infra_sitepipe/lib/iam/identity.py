import logging
from enum import Enum
from typing import Optional

from infra_sitepipe.lib.base import IdentityStateError, MultiplePolicyError
from infra_sitepipe.lib.graph.types import Reference, Resource, ResourceType
from .types import RolePolicy, ServiceTrustStatement, TrustPolicy
from .validation import validate_document

logger = logging.getLogger(__name__)


class IdentityState(Enum):
    DECLARED = "declared"
    """The identity exists with no behaviour"""

    TRUST_BOUND = "trust-bound"
    """The assume-role trust statement is attached"""

    PERMISSION_BOUND = "permission-bound"
    """Exactly one permission document is bound"""

    ACTIVE = "active"
    """Trust and permission are both bound; usable by the engine"""


class Identity:
    """
    A role assumed by exactly one AWS service, carrying exactly one permission document.

    Bindings only move forward: ``DECLARED -> TRUST_BOUND -> PERMISSION_BOUND -> ACTIVE``. Binding a second
    permission document fails instead of merging the two, since overlapping grants silently widen privileges.

    Example::

        identity = Identity("build-role")
        identity.bind_trust(ServiceTrustStatement("codebuild.amazonaws.com"))
        identity.bind_policy(compose_policy("build", requirements))
        identity.activate()

        plan.add(*identity.to_resources())
    """

    def __init__(self, name: str, tags: Optional[dict] = None):
        self.name = name
        self.tags = tags or {}
        self.state = IdentityState.DECLARED
        self.trust: Optional[TrustPolicy] = None
        self.policy: Optional[RolePolicy] = None

    def __repr__(self):
        return f"Identity(name={self.name!r}, state={self.state.value})"

    @property
    def policy_resource_name(self) -> str:
        return f"{self.name}-policy"

    @property
    def arn(self) -> Reference:
        return Reference(self.name, "arn")

    def _require(self, state: IdentityState, action: str) -> None:
        if self.state != state:
            raise IdentityStateError(
                f"cannot {action} identity `{self.name}` in state `{self.state.value}`, expected `{state.value}`"
            )

    def bind_trust(self, statement: ServiceTrustStatement) -> "Identity":
        self._require(IdentityState.DECLARED, "bind trust to")
        self.trust = TrustPolicy(statement)
        self.state = IdentityState.TRUST_BOUND
        logger.debug("%s trusts %s", self.name, statement.Service)
        return self

    def bind_policy(self, policy: RolePolicy) -> "Identity":
        if self.policy is not None:
            raise MultiplePolicyError(self.name, [self.policy.name, policy.name])
        self._require(IdentityState.TRUST_BOUND, "bind a policy to")

        validate_document(policy)
        self.policy = policy
        self.state = IdentityState.PERMISSION_BOUND
        return self

    def activate(self) -> "Identity":
        self._require(IdentityState.PERMISSION_BOUND, "activate")
        self.state = IdentityState.ACTIVE
        return self

    def to_resources(self) -> list[Resource]:
        """
        The role and its inline policy. The policy references the role id, so it is always materialized after the
        role exists.

        :return: [role, role policy]
        """
        self._require(IdentityState.ACTIVE, "declare resources for")

        role = Resource(
            self.name,
            ResourceType.ROLE,
            {
                "assume_role_policy": self.trust,
                "tags": self.tags,
            },
        )
        role_policy = Resource(
            self.policy_resource_name,
            ResourceType.ROLE_POLICY,
            {
                "name": self.policy.name,
                "role": Reference(self.name, "id"),
                "policy": self.policy,
            },
        )
        return [role, role_policy]
