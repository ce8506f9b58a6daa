from enum import Enum


class PublicReadMechanism(Enum):
    ACL = "acl"
    """Public access block relaxed for ACLs, ``BucketOwnerPreferred`` ownership and a ``public-read`` bucket ACL.
    The deploy stage uploads objects with the ``public-read`` canned ACL."""

    POLICY = "policy"
    """Public access block relaxed for bucket policies and a bucket policy granting anonymous ``s3:GetObject``"""

    NONE = "none"
    """No public grant. The public access block blocks everything, including ACLs on objects deployed earlier."""


class ComputeType(Enum):
    SMALL = "BUILD_GENERAL1_SMALL"
    MEDIUM = "BUILD_GENERAL1_MEDIUM"
    LARGE = "BUILD_GENERAL1_LARGE"
