"""
Configuration management for the buildagent package.

This module provides a clean interface for loading, validating, and accessing
the agent's TOML configuration, plus the loader that turns server-issued
job-step documents into build plans.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

from .loader import (
    load_agent_config_file,
    load_json_file,
    load_toml_file,
)
from .plan_loader import (
    load_build_plan_file,
    parse_build_plan,
    parse_command_spec,
)
from .validators import validate_agent_config

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Loaders
    "load_toml_file",
    "load_agent_config_file",
    "load_json_file",
    "validate_agent_config",
    # Build plans
    "load_build_plan_file",
    "parse_build_plan",
    "parse_command_spec",
]
