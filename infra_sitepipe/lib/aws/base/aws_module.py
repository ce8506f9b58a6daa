from abc import ABC
from typing import Optional

from pulumi import ResourceOptions, Config
from pulumi_aws import get_caller_identity, get_partition

from infra_sitepipe.lib.base import BaseModule, ConfigType
from infra_sitepipe.lib.config.settings import ProviderSettings


class AWSModule(BaseModule, ABC):
    """
    Base class for sitepipe modules using the AWS provider
    """

    provider: str = "aws"

    def __init__(
        self,
        name: str,
        config: ConfigType,
        opts: ResourceOptions = None,
        settings: Optional[ProviderSettings] = None,
    ):
        super().__init__(name, config, opts)

        if settings is None:
            settings = ProviderSettings(
                region=Config(self.provider).require("region"),
                aws_account_id=get_caller_identity().account_id,
                partition=get_partition().partition,
            )

        self.settings = settings
        self.region = settings.region
        self.aws_account_id = settings.aws_account_id
        self.partition = settings.partition
