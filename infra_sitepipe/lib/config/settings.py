from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderSettings:
    """
    Provider-wide values a plan is declared and resolved against.

    Passed explicitly to plan declaration and to the resolver; nothing reads these from process-wide state.
    """

    region: str
    """AWS region, e.g. ``us-west-2``"""

    aws_account_id: str
    """Twelve digit account id"""

    partition: str = "aws"
    """AWS partition (``aws``, ``aws-cn``, ``aws-us-gov``)"""
