import logging
import os

from pulumi import get_stack, log, export

from infra_sitepipe.lib.config import get_provider_override
from infra_sitepipe.lib.utils import to_outputs
from infra_sitepipe.module_manager import get_module_manager


def run_stack(provider: str, stack_name: str) -> None:
    """Invoke a module with its stack configuration

    :param provider: A provider
    :param stack_name: The stack name
    :return: None
    """

    provider = get_provider_override() or provider

    module = get_module_manager().get_module(provider, stack_name)

    log.debug(f"running module `{stack_name}`")

    exports = module.run(stack_name)

    export(stack_name, to_outputs(exports))


def run_active_stack(provider: str) -> None:
    """Invoke the active module with its configuration

    :param provider: A provider
    :return: None
    """
    stack = get_stack()

    log.debug(f"active stack is `{stack}`")

    run_stack(provider, stack)


# The graph and iam libraries log through the standard library, configure it before they run.
if os.getenv("SITEPIPE_DEBUG"):
    logging.basicConfig(level=logging.DEBUG)
    msg = "sitepipe logging enabled"
    log.debug(msg)
    logging.debug(msg)
