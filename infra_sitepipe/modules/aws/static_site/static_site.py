from typing import Optional

from pulumi import Config, Output, ResourceOptions, log

from infra_sitepipe.lib.aws.base import AWSModule
from infra_sitepipe.lib.aws.materializer import PulumiMaterializer
from infra_sitepipe.lib.base import ConfigType
from infra_sitepipe.lib.config import get_stack
from infra_sitepipe.lib.config.settings import ProviderSettings
from infra_sitepipe.lib.graph.resolver import Resolver
from infra_sitepipe.lib.s3 import generate_bucket_name
from infra_sitepipe.lib.tags import get_tags
from .config import StaticSiteArgs, StaticSiteExports
from .declare import declare_static_site


class StaticSite(AWSModule):
    def __init__(
        self,
        name: str,
        config: ConfigType,
        opts: ResourceOptions = None,
        settings: Optional[ProviderSettings] = None,
        github_token: Optional[Output[str]] = None,
    ):
        super().__init__(name, config, opts, settings)
        self._github_token = github_token

    def build(self, config: StaticSiteArgs) -> StaticSiteExports:
        github_token = self._github_token
        if github_token is None:
            github_token = Config("github").require_secret("token")

        plan = declare_static_site(
            config,
            self.settings,
            bucket_name=generate_bucket_name(config.name),
            github_token=github_token,
            tags_for=lambda role: get_tags(get_stack(), role, config.name),
        )

        log.debug(f"declared {len(plan)} resources for site `{config.name}`")

        result = Resolver(PulumiMaterializer(parent=self)).apply(plan)

        for finding in result.findings:
            log.warn(f"[{finding.code}] {finding.subject}: {finding.message}")

        return StaticSiteExports(**result.outputs)
