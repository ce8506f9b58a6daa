from infra_sitepipe.lib.graph.types import Reference
from ..types import PolicyDocument, PublicReadStatement

PUBLIC_READ_ACTIONS = ("s3:GetObject",)


def generate_public_read_policy(site_bucket: str) -> PolicyDocument:
    """
    Bucket policy making every object of the site bucket readable by anyone.

    :param site_bucket: Logical name of the site bucket
    :return: PolicyDocument
    """
    return PolicyDocument(
        statements=(
            PublicReadStatement(
                Effect="Allow",
                Action=PUBLIC_READ_ACTIONS,
                Resource=(Reference(site_bucket, "arn", suffix="/*"),),
            ),
        )
    )
