"""Configuration defaults and typed settings for the line patch tools."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

DEFAULT_CONFIG_NAME = "linepatch.yaml"
SUMMARY_ENV_VAR = "GITHUB_STEP_SUMMARY"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "workspace": {
        "root": ".",
    },
    "report": {
        "summary_path": None,
        "include_request": True,
    },
    "logging": {
        "level": "INFO",
    },
}


def copy_config_template() -> Dict[str, Any]:
    """Return a deep copy of the default configuration template."""
    return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)


def write_config(config_path: Path, config_data: Mapping[str, Any]) -> None:
    """Persist configuration data to disk with stable formatting."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(dict(config_data), handle, sort_keys=False)


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name)
    return value if isinstance(value, Mapping) else {}


@dataclass(slots=True)
class Settings:
    """Resolved configuration for one run."""

    workspace_root: Path
    summary_path: Path | None = None
    include_request: bool = True
    log_level: int = logging.INFO

    @classmethod
    def from_mapping(
        cls,
        config: Mapping[str, Any],
        *,
        base_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Build settings from a parsed config, resolving paths against ``base_dir``."""
        base = (base_dir or Path.cwd()).resolve()
        env = os.environ if environ is None else environ

        workspace_cfg = _section(config, "workspace")
        root = Path(str(workspace_cfg.get("root") or "."))
        if not root.is_absolute():
            root = (base / root).resolve()

        report_cfg = _section(config, "report")
        summary_value = report_cfg.get("summary_path") or env.get(SUMMARY_ENV_VAR)
        summary_path: Path | None = None
        if isinstance(summary_value, str) and summary_value.strip():
            summary_path = Path(summary_value.strip())
            if not summary_path.is_absolute():
                summary_path = (base / summary_path).resolve()

        logging_cfg = _section(config, "logging")
        level_name = str(logging_cfg.get("level") or "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.INFO

        return cls(
            workspace_root=root,
            summary_path=summary_path,
            include_request=bool(report_cfg.get("include_request", True)),
            log_level=level,
        )


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_CONFIG_TEMPLATE",
    "SUMMARY_ENV_VAR",
    "Settings",
    "copy_config_template",
    "write_config",
]
