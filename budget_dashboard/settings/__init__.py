"""Display defaults and labels for the dashboard.

Configuration is stored in JSON files beside this module so labels and
defaults can change without code changes.
"""

from .defaults import load_config, get_ledger_config, get_config_value

__all__ = ['load_config', 'get_ledger_config', 'get_config_value']
