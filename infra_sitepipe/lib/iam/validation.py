import logging
import re
from typing import Callable, Optional, Union

from infra_sitepipe.lib.base import PolicyValidationError
from infra_sitepipe.lib.graph.types import Reference
from .types import PolicyDocument, Statement, TrustPolicy

logger = logging.getLogger(__name__)

ACTION_PATTERN = re.compile(r"^(?P<namespace>[a-z0-9-]+):(?P<verb>[A-Z][A-Za-z0-9]*\*?|\*)$")

KNOWN_NAMESPACES = frozenset({"s3", "logs", "codebuild", "codepipeline", "iam", "sts"})
"""Service namespaces this package declares permissions for"""

UNSCOPED_ACTIONS = frozenset(
    {
        "codebuild:ListCuratedEnvironmentImages",
        "codebuild:ListReportGroups",
        "codebuild:ListReports",
        "logs:DescribeLogGroups",
    }
)
"""
Read-only reporting and logging actions AWS does not support resource-level permissions for. These are the only
actions that may be granted on a bare ``*``.
"""

ReferenceService = Callable[[Reference], str]
"""Maps a reference onto the service namespace of the resource it points at"""


def _arn_service(arn: str) -> str:
    parts = arn.split(":", 5)
    if len(parts) != 6 or parts[0] != "arn":
        raise PolicyValidationError(f"`{arn}` is neither an ARN nor `*`")
    if parts[5].startswith("*"):
        raise PolicyValidationError(f"`{arn}` is an unscoped wildcard; keep a literal resource prefix")
    return parts[2]


def validate_statement(statement: Statement, reference_service: Optional[ReferenceService] = None) -> None:
    """
    Validate a permission statement

    * every action is ``namespace:Verb`` with a known namespace
    * a bare ``*`` resource is only allowed when every action is in ``UNSCOPED_ACTIONS``
    * every ARN (literal or referenced) belongs to the namespace of every action

    :param statement: Statement to validate
    :param reference_service: Resolves the service of a referenced resource. References are not checked without it.
    :raises PolicyValidationError:
    """
    namespaces = set()
    for action in statement.Action:
        if not (match := ACTION_PATTERN.match(action)):
            raise PolicyValidationError(f"`{action}` is not a valid action")
        if match["namespace"] not in KNOWN_NAMESPACES:
            raise PolicyValidationError(f"`{action}` is not in a known service namespace")
        namespaces.add(match["namespace"])

    for resource in statement.Resource:
        if isinstance(resource, Reference):
            if resource.attribute != "arn":
                raise PolicyValidationError(f"statement resource `{resource}` does not reference an ARN")
            if reference_service is None:
                continue
            service = reference_service(resource)
        elif resource == "*":
            if over := sorted(set(statement.Action) - UNSCOPED_ACTIONS):
                raise PolicyValidationError(f"{over} must be scoped to a resource, not `*`")
            continue
        else:
            service = _arn_service(resource)

        if mismatched := sorted(ns for ns in namespaces if ns != service):
            raise PolicyValidationError(
                f"resource `{resource}` belongs to `{service}` but the statement grants {mismatched} actions"
            )


def validate_document(
    document: Union[PolicyDocument, TrustPolicy], reference_service: Optional[ReferenceService] = None
) -> None:
    """Validate every statement of a document. Trust policies validate themselves on construction."""
    if isinstance(document, TrustPolicy):
        return

    if not document.statements:
        raise PolicyValidationError("policy document has no statements")

    for statement in document.statements:
        validate_statement(statement, reference_service)

    logger.debug("validated document with %d statement(s)", len(document.statements))
