"""
Configuration models, loading and persistence.

Tool configuration merges defaults < user < project < env vars; the
workspace record is persisted by SettingsStore.
"""

from .loader import (
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    CollabSettings,
    GitCollabConfig,
    GitConfig,
    GitHubConfig,
    SyncConfig,
)
from .store import SettingsStore, SettingsStoreError

__all__ = [
    # Models
    "CollabSettings",
    "GitCollabConfig",
    "GitConfig",
    "GitHubConfig",
    "SyncConfig",
    # Persistence
    "SettingsStore",
    "SettingsStoreError",
    # Loader functions
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
