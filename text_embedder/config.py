"""
Settings
=========
Reads ``configs/settings.yaml`` and exposes the embedder's configuration as
an ``EmbedderSettings`` dataclass.

    embedder:
      provider: local            # "local" or "openai"
      model_path: models/.../model.onnx
      vocab_path: models/.../vocab.txt
      openai_model: openai/text-embedding-ada-002
    openvino:
      device: CPU
    openai:
      base_url: https://api.openai.com/v1
      timeout: 30

The OpenAI key is never read from the YAML file; it comes from the
``OPENAI_API_KEY`` environment variable.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path(__file__).resolve().parent.parent / "configs" / "settings.yaml"

API_KEY_ENV = "OPENAI_API_KEY"

PROVIDER_LOCAL = "local"
PROVIDER_OPENAI = "openai"


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from a YAML file (default: configs/settings.yaml).

    Returns:
        The parsed YAML as a dict, or empty dict if the file is missing
        or cannot be parsed.
    """
    settings_path = Path(path) if path else SETTINGS_PATH
    if not settings_path.exists():
        logger.warning("Settings file not found: %s", settings_path)
        return {}
    try:
        with open(settings_path, "r") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to read settings: %s", exc)
        return {}


@dataclass(frozen=True)
class EmbedderSettings:
    provider: str = PROVIDER_LOCAL
    model_path: str = ""
    vocab_path: str = ""
    device: str = "CPU"
    openai_model: str = ""
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout: float = 30

    @property
    def is_remote(self) -> bool:
        return self.provider == PROVIDER_OPENAI

    @classmethod
    def from_dict(cls, settings: Dict[str, Any]) -> "EmbedderSettings":
        embedder = settings.get("embedder", {}) or {}
        ov_settings = settings.get("openvino", {}) or {}
        openai = settings.get("openai", {}) or {}

        provider = str(embedder.get("provider", PROVIDER_LOCAL)).lower()
        if provider not in (PROVIDER_LOCAL, PROVIDER_OPENAI):
            logger.warning("Unknown provider '%s', using local", provider)
            provider = PROVIDER_LOCAL

        return cls(
            provider=provider,
            model_path=str(embedder.get("model_path", "")),
            vocab_path=str(embedder.get("vocab_path", "")),
            device=str(ov_settings.get("device", "CPU")),
            openai_model=str(embedder.get("openai_model", "")),
            openai_api_key=os.environ.get(API_KEY_ENV, ""),
            openai_base_url=str(openai.get("base_url", cls.openai_base_url)),
            openai_timeout=float(openai.get("timeout", cls.openai_timeout)),
        )

    @classmethod
    def load(cls, path: Optional[str] = None) -> "EmbedderSettings":
        return cls.from_dict(load_settings(path))
