import logging
from dataclasses import asdict

from infra_sitepipe.lib.config.settings import ProviderSettings
from .types import ResourceAddress

logger = logging.getLogger(__name__)


def interpolate_resource(settings: ProviderSettings, resource: ResourceAddress) -> ResourceAddress:
    """
    Interpolate resource identifiers against the provider settings

    Example:
        "arn:{partition}:logs:{region}:{aws_account_id}:log-group:/aws/codebuild/docs-build"
        becomes
        "arn:aws:logs:us-west-2:1234567890:log-group:/aws/codebuild/docs-build"

    References are returned unchanged; they resolve once their target is materialized.

    :param settings: Provider settings to interpolate from
    :param resource: Resource string to interpolate
    :return: Interpolated resource string
    """
    if not isinstance(resource, str):
        return resource

    interpolated = resource.format(**asdict(settings))
    logger.debug("interpolating resource: [%s] to [%s]", resource, interpolated)
    return interpolated
