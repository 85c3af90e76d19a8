"""Three-tier settings loader.

Merge priority: system defaults -> user (~/.vision_relay/settings.json)
-> project (.vision_relay/settings.json) -> CLI overrides

Scalars and lists: last wins (no list merge).
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from vision_relay.config.schema import ImageRelaySettings

logger = logging.getLogger(__name__)

SETTINGS_DIR = ".vision_relay"
SETTINGS_FILE = "settings.json"


class SettingsLoader:
    """Loads ImageRelaySettings from packaged defaults, user and project files."""

    def __init__(self, workspace_root: str | Path | None = None):
        self.workspace_root = Path(workspace_root).resolve() if workspace_root else None
        self._system_dir = Path(__file__).parent / "defaults"

    def load(self, cli_overrides: dict[str, Any] | None = None) -> ImageRelaySettings:
        """Load and merge settings from all tiers."""
        system = self._load_json(self._system_dir / "image_relay.json")
        user = self._load_json(Path.home() / SETTINGS_DIR / SETTINGS_FILE)
        project = self._load_project()

        merged = self._merge(system, user)
        merged = self._merge(merged, project)

        if cli_overrides:
            merged = self._merge(merged, {k: v for k, v in cli_overrides.items() if v is not None})

        merged = self._expand_env_vars(merged)
        return ImageRelaySettings(**merged)

    def _load_project(self) -> dict[str, Any]:
        if not self.workspace_root:
            return {}
        return self._load_json(self.workspace_root / SETTINGS_DIR / SETTINGS_FILE)

    @staticmethod
    def _load_json(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Skipping unreadable settings file %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Skipping settings file %s: top level must be an object", path)
            return {}
        return data

    @staticmethod
    def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        if not override:
            return base.copy()
        result = base.copy()
        result.update(override)
        return result

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR} and ~ in string values."""
        if isinstance(obj, dict):
            return {k: self._expand_env_vars(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._expand_env_vars(v) for v in obj]
        if isinstance(obj, str):
            return os.path.expandvars(os.path.expanduser(obj))
        return obj


def load_settings(
    workspace_root: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ImageRelaySettings:
    """Convenience wrapper around SettingsLoader."""
    return SettingsLoader(workspace_root).load(cli_overrides)
