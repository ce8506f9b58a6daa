import logging
from collections import defaultdict
from dataclasses import dataclass

from infra_sitepipe.lib.base import ConflictingGrantError, MultiplePolicyError
from infra_sitepipe.lib.iam.types import PolicyDocument, PublicReadStatement
from infra_sitepipe.lib.iam.validation import validate_document
from .plan import Plan
from .types import Reference, Resource, ResourceType

logger = logging.getLogger(__name__)

PUBLIC_ACLS = ("public-read", "public-read-write")


@dataclass(frozen=True)
class Finding:
    """A design smell. Reported, never fatal."""

    code: str
    subject: str
    message: str


def _target(value) -> str:
    return value.target if isinstance(value, Reference) else value


def _check_single_policy_per_role(plan: Plan) -> None:
    policies_by_role = defaultdict(list)
    for policy in plan.of_type(ResourceType.ROLE_POLICY):
        policies_by_role[_target(policy.config.get("role"))].append(policy.name)

    for role, policies in policies_by_role.items():
        if len(policies) > 1:
            raise MultiplePolicyError(role, policies)


def _check_documents(plan: Plan) -> None:
    def reference_service(ref: Reference) -> str:
        return plan[ref.target].type.service

    for resource in plan.of_type(ResourceType.ROLE_POLICY) + plan.of_type(ResourceType.BUCKET_POLICY):
        document = resource.config.get("policy")
        if isinstance(document, PolicyDocument):
            validate_document(document, reference_service)


def _public_grants(plan: Plan) -> dict[str, list[Resource]]:
    """Resources granting anonymous read, per bucket"""
    grants = defaultdict(list)

    for acl in plan.of_type(ResourceType.BUCKET_ACL):
        if acl.config.get("acl") in PUBLIC_ACLS:
            grants[_target(acl.config.get("bucket"))].append(acl)

    for policy in plan.of_type(ResourceType.BUCKET_POLICY):
        document = policy.config.get("policy")
        if isinstance(document, PolicyDocument) and any(
            isinstance(s, PublicReadStatement) for s in document.statements
        ):
            grants[_target(policy.config.get("bucket"))].append(policy)

    return grants


def _check_public_grants(plan: Plan) -> list[Finding]:
    findings = []
    blocks = {_target(b.config.get("bucket")): b.config for b in plan.of_type(ResourceType.BUCKET_PUBLIC_ACCESS_BLOCK)}

    for bucket, grants in _public_grants(plan).items():
        if len(grants) > 1:
            raise ConflictingGrantError(bucket, [grant.name for grant in grants])

        grant = grants[0]
        block = blocks.get(bucket, {})
        if grant.type == ResourceType.BUCKET_ACL:
            relaxed = not block.get("block_public_acls") and not block.get("ignore_public_acls")
        else:
            relaxed = not block.get("block_public_policy") and not block.get("restrict_public_buckets")

        if not relaxed:
            findings.append(
                Finding(
                    "ineffective-public-grant",
                    bucket,
                    f"`{grant.name}` grants public read but the bucket's public access block still denies it",
                )
            )

    return findings


def _check_overlapping_writers(plan: Plan) -> list[Finding]:
    findings = []

    for bucket in plan.of_type(ResourceType.BUCKET):
        objects = str(Reference(bucket.name, "arn", suffix="/*"))
        writers = sorted(
            _target(policy.config.get("role"))
            for policy in plan.of_type(ResourceType.ROLE_POLICY)
            if isinstance(policy.config.get("policy"), PolicyDocument)
            and ("s3:PutObject", objects) in policy.config["policy"].grants()
        )
        if len(writers) > 1:
            findings.append(
                Finding(
                    "overlapping-site-writers",
                    bucket.name,
                    f"{', '.join(writers)} can all write to `{bucket.name}`; "
                    "if only one of them deploys, drop the other's write grant",
                )
            )

    return findings


def validate_plan(plan: Plan) -> list[Finding]:
    """
    Run every structural and policy check on a plan.

    Raises on the first structural or policy error; nothing is materialized for a plan that fails here. Design
    smells are returned (and logged) as findings.

    :param plan: The plan to validate
    :return: Findings
    """
    plan.topological_order()
    _check_single_policy_per_role(plan)
    _check_documents(plan)

    findings = _check_public_grants(plan) + _check_overlapping_writers(plan)

    for finding in findings:
        logger.warning("[%s] %s: %s", finding.code, finding.subject, finding.message)

    return findings
