from .core import (
    get_sysenv,
    get_purpose,
    get_phase,
    get_provider_and_region,
    get_stack,
    get_project,
    get_tag_namespace,
    get_tag_prefix,
    get_team,
    get_provider_override,
)
from .mapper import get_stack_config, config_from_dict
from .settings import ProviderSettings
from .sitepipe_env import get_sitepipe_env, HierarchicalConfig, SitepipeConfigException
