import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from infra_sitepipe.lib.base import PolicyValidationError
from .types import ReadStatement, ResourceAddress, RolePolicy, WriteStatement, is_read_action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Requirement:
    """Every action in ``actions`` must be allowed on every address in ``resources``"""

    actions: frozenset[str]
    resources: tuple[ResourceAddress, ...]

    def __init__(self, actions: Iterable[str], resources: Iterable[ResourceAddress]):
        object.__setattr__(self, "actions", frozenset(actions))
        object.__setattr__(self, "resources", tuple(dict.fromkeys(resources)))

        if not self.actions or not self.resources:
            raise PolicyValidationError("a requirement needs at least one action and one resource")


def compose_policy(name: str, requirements: Iterable[Requirement]) -> RolePolicy:
    """
    Compose the minimal permission document that satisfies every requirement.

    Each ``(action, resource)`` pair is granted exactly once. Actions granted on the same set of resources are folded
    into one statement, kept apart by kind so read-only grants stay ``ReadStatement``s. Actions, resources and
    statements are sorted so the rendered document is stable across runs.

    Example::

        compose_policy("build", [
            Requirement({"s3:GetObject", "s3:PutObject"}, [site_objects]),
            Requirement({"s3:GetObject"}, [artifact_objects]),
        ])

    yields one read statement for ``s3:GetObject`` on both addresses and one write statement for ``s3:PutObject``
    on ``site_objects``.

    :param name: Name of the inline policy
    :param requirements: What the identity needs to do, and where
    :return: RolePolicy
    """
    resources_by_action: dict[str, dict[ResourceAddress, None]] = defaultdict(dict)
    for requirement in requirements:
        for action in requirement.actions:
            for resource in requirement.resources:
                resources_by_action[action][resource] = None

    if not resources_by_action:
        raise PolicyValidationError(f"policy `{name}` has no requirements")

    groups: dict[tuple[bool, tuple[ResourceAddress, ...]], list[str]] = defaultdict(list)
    for action, resources in resources_by_action.items():
        key = (is_read_action(action), tuple(sorted(resources, key=str)))
        groups[key].append(action)

    statements = []
    for (read, resources), actions in sorted(groups.items(), key=lambda item: (not item[0][0], sorted(item[1]))):
        statement_cls = ReadStatement if read else WriteStatement
        statements.append(statement_cls(Effect="Allow", Action=tuple(sorted(actions)), Resource=resources))

    logger.debug("composed policy `%s` with %d statement(s)", name, len(statements))

    return RolePolicy(name=name, statements=tuple(statements))
