from typing import Optional

from pulumi import Config, get_stack, get_project

from infra_sitepipe.lib.base import SitepipeException
from infra_sitepipe.lib.utils import run_once
from .sitepipe_env import get_sitepipe_env

aws_config = Config("aws")
sitepipe_config = Config("sitepipe")


def get_tag_namespace() -> str:
    """Resources tagged through the tagging library use this to prefix the standard tags.

    This differs from the Pulumi config namespace (``sitepipe:``), as it is used for the resources themselves.
    """
    return get_sitepipe_env().get("tag_namespace", "sitepipe")


def get_tag_prefix() -> str:
    return f"{get_tag_namespace()}{get_sitepipe_env().get('tag_separator', ':')}"


def get_team() -> str:
    return get_sitepipe_env().require("team")


def get_provider_and_region():
    """
    Retrieve the provider and region for this program
    :return: (provider, region)
    """
    aws_region = aws_config.get("region")

    if aws_region:
        return "aws", aws_region
    else:
        raise SitepipeException("Unknown provider! Set `aws:region` on the stack.")


def get_purpose():
    return get_sitepipe_env().require("purpose")


def get_phase():
    return get_sitepipe_env().require("phase")


@run_once
def get_sysenv():
    """
    Returns the SysEnv name for this program
    SysEnvs are named `{namespace}-{provider}-{region}-{purpose}-{phase}`.

    An example SysEnv name is `sp-aws-us-west-2-sandbox-dev`

    Can be overridden by setting `sysenv` in your Sitepipe.common.yaml

    :return: SysEnv name
    """
    if config_sysenv := get_sitepipe_env().get("sysenv"):
        return config_sysenv

    namespace = get_sitepipe_env().require("namespace")
    provider, region = get_provider_and_region()

    return f"{namespace}-{provider}-{region}-{get_purpose()}-{get_phase()}"


def get_provider_override() -> Optional[str]:
    """
    Retrieve the provider override for the current module (`sitepipe:provider: myprovider`)

    :return: str
    """
    return sitepipe_config.get("provider")
