import logging
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Optional

from infra_sitepipe.lib.graph.state import Record, State
from infra_sitepipe.lib.graph.types import ResourceType
from infra_sitepipe.lib.graph.validation import PUBLIC_ACLS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str

    def __bool__(self):
        return self.allowed


def _attached(state: State, resource_type: ResourceType, bucket_id: str) -> list[Record]:
    return [
        state[name]
        for name in state
        if state[name].type == resource_type and state[name].inputs.get("bucket") == bucket_id
    ]


def _matches(patterns, value: str) -> bool:
    if isinstance(patterns, str):
        patterns = [patterns]
    return any(fnmatchcase(value, pattern) for pattern in patterns)


def _policy_effect(document: dict, object_arn: str) -> Optional[str]:
    """Effect of a bucket policy on an anonymous ``s3:GetObject``, explicit denies first"""
    effects = set()
    for statement in document.get("Statement", []):
        if statement.get("Principal") not in ("*", {"AWS": "*"}):
            continue
        if _matches(statement.get("Action", []), "s3:GetObject") and _matches(statement.get("Resource", []), object_arn):
            effects.add(statement.get("Effect"))

    if "Deny" in effects:
        return "Deny"
    return "Allow" if "Allow" in effects else None


def evaluate_anonymous_get(state: State, bucket: str, key: str = "") -> AccessDecision:
    """
    Decide whether an unauthenticated GET on the bucket's website endpoint would succeed, from materialized state.

    A bucket without a public access block blocks nothing. Public ACLs that are not ignored may still sit on objects
    uploaded with a public-read ACL, so such a bucket is only reported denied when ACLs are ignored.

    :param state: Materialized state
    :param bucket: Logical name of the bucket
    :param key: Object key; empty for the index document
    :return: AccessDecision
    """
    if bucket not in state:
        return AccessDecision(False, f"bucket `{bucket}` is not materialized")

    attributes = state[bucket].attributes
    bucket_id = attributes["id"]

    websites = _attached(state, ResourceType.BUCKET_WEBSITE, bucket_id)
    if not websites:
        return AccessDecision(False, "website hosting is not enabled")
    if not key:
        key = websites[0].inputs["index_document"]["suffix"]

    blocks = _attached(state, ResourceType.BUCKET_PUBLIC_ACCESS_BLOCK, bucket_id)
    block = blocks[0].inputs if blocks else {}
    object_arn = f"{attributes['arn']}/{key}"

    for policy in _attached(state, ResourceType.BUCKET_POLICY, bucket_id):
        effect = _policy_effect(policy.inputs["policy"], object_arn)
        if effect == "Deny":
            return AccessDecision(False, "bucket policy denies anonymous reads")
        if effect == "Allow":
            if block.get("block_public_policy") or block.get("restrict_public_buckets"):
                return AccessDecision(False, "public access block overrides the public bucket policy")
            return AccessDecision(True, f"bucket policy grants anonymous read on `{key}`")

    for acl in _attached(state, ResourceType.BUCKET_ACL, bucket_id):
        if acl.inputs.get("acl") in PUBLIC_ACLS:
            if block.get("block_public_acls") or block.get("ignore_public_acls"):
                return AccessDecision(False, "public access block overrides the public ACL")
            return AccessDecision(True, f"bucket ACL grants anonymous read on `{key}`")

    if not block.get("ignore_public_acls"):
        return AccessDecision(True, f"public ACLs are not ignored; `{key}` is readable if it was uploaded public-read")

    return AccessDecision(False, "access denied: no public-read grant")
