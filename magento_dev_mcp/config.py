"""Configuration helpers for the MCP server and CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_FILE = "magento-dev-mcp.yaml"


def _resolve(raw: str, base_dir: Path) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return path


@dataclass
class ProjectConfig:
    """The Magento installation the server works on."""

    root: Path

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Path) -> "ProjectConfig":
        return cls(root=_resolve(data.get("root", "."), base_dir))


@dataclass
class MagerunConfig:
    """How to invoke n98-magerun2."""

    binary: str = "magerun2"
    timeout: float = 30
    docker: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MagerunConfig":
        timeout = data.get("timeout", 30)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            raise ValueError(f"magerun.timeout must be a positive number, got {timeout!r}")
        return cls(
            binary=data.get("binary", "magerun2"),
            timeout=timeout,
            docker=bool(data.get("docker", True)),
        )


@dataclass
class AnalysisConfig:
    """Plugin analysis settings.

    ``symbol_cache`` is a SQLite file holding the PHP symbol index between
    runs; None keeps the index in memory for a single request.
    """

    symbol_cache: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Path) -> "AnalysisConfig":
        raw_cache = data.get("symbol_cache")
        return cls(symbol_cache=_resolve(raw_cache, base_dir) if raw_cache else None)


@dataclass
class ServerConfig:
    """Top-level configuration."""

    project: ProjectConfig
    magerun: MagerunConfig = field(default_factory=MagerunConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Path) -> "ServerConfig":
        return cls(
            project=ProjectConfig.from_dict(data.get("project") or {}, base_dir),
            magerun=MagerunConfig.from_dict(data.get("magerun") or {}),
            analysis=AnalysisConfig.from_dict(data.get("analysis") or {}, base_dir),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )

    @classmethod
    def for_project(cls, root: Path | str) -> "ServerConfig":
        """Default configuration for a project root, used when no file is given."""
        return cls(project=ProjectConfig(root=Path(root).resolve()))

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the configuration to a basic dictionary (useful for debugging)."""
        return {
            "project": {"root": str(self.project.root)},
            "magerun": {
                "binary": self.magerun.binary,
                "timeout": self.magerun.timeout,
                "docker": self.magerun.docker,
            },
            "analysis": {
                "symbol_cache": str(self.analysis.symbol_cache) if self.analysis.symbol_cache else None,
            },
            "log_level": self.log_level,
        }


def load_server_config(path: Path | str) -> ServerConfig:
    """Load the server configuration from JSON or YAML."""

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    raw_text = config_path.read_text()
    suffix = config_path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(raw_text) or {}
    elif suffix == ".json":
        data = json.loads(raw_text or "{}")
    else:
        raise ValueError(
            f"Unsupported configuration format '{suffix}'. Use .yaml, .yml, or .json."
        )

    base_dir = config_path.parent.resolve()
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a JSON/YAML object at the top level.")
    return ServerConfig.from_dict(data, base_dir)
