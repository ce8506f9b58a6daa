import json
from enum import Enum
from typing import Type, Any

from dacite import from_dict, Config
from pulumi import log, runtime

from infra_sitepipe.lib.base import ConfigType


def _parse_args_value(value: Any) -> Any:
    """Parse and return json values if valid json, else return original value

    :param value: A potential json string
    :return: Parsed json object or raw arg
    """
    try:
        return json.loads(value)
    except (json.decoder.JSONDecodeError, TypeError):
        return value


def get_raw_stack_config(stack: str) -> dict:
    """Pull stack config from Pulumi internals, clean it and return in dict form

    This method may break when upgrading the ``pulumi`` python dependency.

    :param stack: Name of the stack
    :return: dict
    """
    stack_prefix = stack + ":"

    config = {
        k.removeprefix(stack_prefix): _parse_args_value(v)
        for k, v in runtime.config.CONFIG.items()
        if k.startswith(stack_prefix)
    }

    log.debug(f"config dict for stack `{stack}` is {config}")

    return config


def config_from_dict(data: dict, config_cls: Type[ConfigType]) -> ConfigType:
    """Map a plain dict onto a module config dataclass

    Uses `dacite <https://github.com/konradhalas/dacite>`_. Unknown keys are rejected and enums are cast from their
    values.

    :param data: Raw config
    :param config_cls: The dataclass for the config
    :return: The config expressed in the module's config dataclass
    """
    return from_dict(
        data_class=config_cls,
        data=data,
        config=Config(
            cast=[Enum],
            strict=True,
        ),
    )


def get_stack_config(stack: str, config_cls: Type[ConfigType]) -> ConfigType:
    """Get a stack config in dataclass form

    :param stack: Name of the stack
    :param config_cls: The dataclass for the config
    :return: The stack config expressed in the module's config dataclass
    """
    config = config_from_dict(get_raw_stack_config(stack), config_cls)

    log.debug(f"config for stack `{stack}` is {config}")

    return config
