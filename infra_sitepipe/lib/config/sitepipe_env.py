import logging
import os
import sys
from collections import UserDict
from pathlib import Path
from typing import Optional

import hiyapyco

from infra_sitepipe.lib.base import SitepipeException
from infra_sitepipe.lib.utils import run_once

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "Sitepipe.common.yaml"

ROOT_ENV_VAR = "SITEPIPE_ROOT"
"""Directory to start config discovery from instead of the directory of the ``__main__`` module"""


class SitepipeConfigException(SitepipeException):
    def __init__(self, key):
        super().__init__(f"Missing required configuration variable '{key}'")


class HierarchicalConfig(UserDict):
    """
    HierarchicalConfig is a UserDict that loads configuration from a tiered set of config files.

    ``Sitepipe.common.yaml`` is loaded from the directory of the entrypoint (the Pulumi program, usually a sysenv's
    ``__main__.py``), then the filesystem is walked upwards a configurable number of times to find other
    ``Sitepipe.common.yaml`` files. Files closer to the entrypoint win.

    The discovered files are merged using HiYaPyCo, which supports Jinja2 syntax inside values.

    Example usage:
        from infra_sitepipe.lib.config import get_sitepipe_env

        get_sitepipe_env().get("tag_namespace", "sitepipe")
        get_sitepipe_env().require("team")
    """

    def __init__(self, limit=5, filename=CONFIG_FILENAME, start: Optional[Path] = None):
        """
        Create a HierarchicalConfig UserDict

        :param limit: Max parent directories to walk
        :param filename: Filename to find and merge
        :param start: Directory to start the walk from. Defaults to ``$SITEPIPE_ROOT`` or the entrypoint's directory.
        """
        super().__init__()
        self.filename = filename
        configs = list(reversed(self._discover_configs(limit, start)))
        logger.debug("Found configs in %s", configs)

        if configs:
            self.data = dict(hiyapyco.load([str(path) for path in configs], method=hiyapyco.METHOD_MERGE) or {})
        else:
            logger.warning("No %s found, continuing with an empty configuration", filename)

    def require(self, key: str) -> any:
        """
        Require a key from the configuration and return it. If not found, raise a `SitepipeConfigException`

        :param key: Key string to require from the configuration
        :return: Object
        """
        if v := self.get(key):
            return v
        else:
            raise SitepipeConfigException(key)

    @staticmethod
    def _entrypoint_dir(start: Optional[Path]) -> Path:
        if start:
            return Path(start).absolute()

        if root := os.getenv(ROOT_ENV_VAR):
            return Path(root).absolute()

        main_module = sys.modules["__main__"]
        if not hasattr(main_module, "__file__"):
            raise SitepipeException(
                f"Can't find __file__ for __main__. HINT: set ${ROOT_ENV_VAR} when running outside a Pulumi program."
            )

        return Path(main_module.__file__).absolute().parent

    def _discover_configs(self, limit: int, start: Optional[Path]) -> list[Path]:
        """
        Walk upwards from the entrypoint directory collecting config files, nearest first

        :param limit: Max parent directories to walk
        :param start: Optional directory to start from
        :return:
        """
        config_paths = []

        entrypoint_dir = self._entrypoint_dir(start)
        logger.debug("Entrypoint directory: %s", entrypoint_dir)

        for path in [entrypoint_dir, *list(entrypoint_dir.parents)[:limit]]:
            logger.debug("Looking in [%s] for [%s]", path, self.filename)
            maybe_config = path / self.filename
            if maybe_config.exists():
                logger.debug("Detected config [%s]", maybe_config)
                config_paths.append(maybe_config)

            # a config may live at the project root, but not above it
            if (path / ".git").is_dir():
                logger.debug("Found project root, breaking")
                break

        return config_paths


@run_once
def get_sitepipe_env() -> HierarchicalConfig:
    """Load and merge the hierarchical configuration once per process"""
    return HierarchicalConfig()
