"""
Configuration Management

Centralized configuration for:
- Runtime settings (seed, loop bounds, save backend, logging)
- Catalog documents (defaults, dialers, lead sources, upgrades, events)
"""

from .settings import (
    Settings,
    SimulationSettings,
    PersistenceSettings,
    SaveBackendType,
    get_settings
)
from .catalog import (
    Catalog,
    ConfigurationError,
    DefaultsConfig,
    DialerConfig,
    LeadSourceConfig,
    UpgradeConfig,
    AddAgentEffect,
    AddLeadsEffect,
    PassiveEffect,
    PassiveEffectType,
    load_catalog
)

__all__ = [
    "Settings",
    "SimulationSettings",
    "PersistenceSettings",
    "SaveBackendType",
    "get_settings",
    "Catalog",
    "ConfigurationError",
    "DefaultsConfig",
    "DialerConfig",
    "LeadSourceConfig",
    "UpgradeConfig",
    "AddAgentEffect",
    "AddLeadsEffect",
    "PassiveEffect",
    "PassiveEffectType",
    "load_catalog"
]
