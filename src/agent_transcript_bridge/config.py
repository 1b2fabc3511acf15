"""Bridge configuration.

``BridgeConfig`` names the optional backend module, the default backend
namespace, and where legacy transcripts live.  It can be built directly,
from a YAML file, or from ``TRANSCRIPT_BRIDGE_*`` environment variables.

Classes
-------
- BridgeConfig  — validated configuration for ``TranscriptBridge``
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

from agent_transcript_bridge.enhanced.loader import (
    DEFAULT_BACKEND_EXPORT,
    DEFAULT_BACKEND_MODULE,
)

ENV_PREFIX = "TRANSCRIPT_BRIDGE_"


class BridgeConfig(BaseModel):
    """Configuration parameters for ``TranscriptBridge``.

    Parameters
    ----------
    backend_module:
        Importable name of the enhanced backend package.
        Default: ``"aeon_memory"``.
    backend_export:
        Attribute of ``backend_module`` holding the instance factory.
        Default: ``"AeonMemory"``.
    namespace:
        Backend namespace used when a caller does not name one.
        Default: ``"main"``.
    transcript_dir:
        Directory of legacy ``<session_id>.jsonl`` files.
        Default: ``~/.agent-transcripts``.
    """

    backend_module: str = DEFAULT_BACKEND_MODULE
    backend_export: str = DEFAULT_BACKEND_EXPORT
    namespace: str = "main"
    transcript_dir: Path = Field(default_factory=lambda: Path.home() / ".agent-transcripts")

    model_config = {"frozen": True}

    @field_validator("backend_module", "backend_export", "namespace")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("transcript_dir")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def from_yaml(cls, path: str | Path) -> BridgeConfig:
        """Load configuration from a YAML mapping.

        A missing or empty file yields the defaults.

        Raises
        ------
        ValueError
            If the document is not a mapping.
        pydantic.ValidationError
            If a value is invalid.
        """
        file_path = Path(path)
        if not file_path.exists():
            return cls()
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a mapping.")
        return cls.model_validate(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeConfig:
        """Build configuration from ``TRANSCRIPT_BRIDGE_<FIELD>`` variables."""
        env = os.environ if environ is None else environ
        data: dict[str, str] = {}
        for name in cls.model_fields:
            value = env.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                data[name] = value
        return cls.model_validate(data)


__all__ = ["BridgeConfig", "ENV_PREFIX"]
