"""Load Settings from a YAML file, a .env file and the environment."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from radiopulse.models.config import Settings
from radiopulse.utils.io import read_yaml

DEFAULT_CONFIG = "radiopulse.yaml"

# env var -> (section, field)
ENV_OVERRIDES = {
    "TRANSCRIPTION_PROVIDER": ("transcription", "provider"),
    "TRANSCRIPTION_OPENAI_API_KEY": ("transcription", "openai_api_key"),
    "TRANSCRIPTION_GOOGLE_API_KEY": ("transcription", "google_api_key"),
    "TOPIC_EXTRACTION_PROVIDER": ("topic_extraction", "provider"),
    "TOPIC_EXTRACTION_OPENAI_API_KEY": ("topic_extraction", "openai_api_key"),
    "TOPIC_EXTRACTION_GOOGLE_API_KEY": ("topic_extraction", "google_api_key"),
    "ANTHROPIC_API_KEY": ("topic_extraction", "anthropic_api_key"),
    "SEGMENT_DIR": ("orchestrator", "base_segment_dir"),
}


def apply_env_overrides(data: dict, environ: dict[str, str] | None = None) -> dict:
    """Overlay non-empty environment values onto raw settings data."""
    environ = os.environ if environ is None else environ
    for var, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            data.setdefault(section, {})[field] = value
    return data


def load_settings(path: Path | str | None = None, *, env_file: Path | str | None = None) -> Settings:
    """Build Settings from ``path`` (if it exists) plus environment overrides.

    Values already in the process environment win over the .env file.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    data: dict = {}
    config_path = Path(path) if path is not None else Path(DEFAULT_CONFIG)
    if config_path.exists():
        data = read_yaml(config_path)
    elif path is not None:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    # ruamel returns CommentedMaps; plain dicts keep setdefault predictable
    data = {k: dict(v) if isinstance(v, dict) else v for k, v in data.items()}
    return Settings.model_validate(apply_env_overrides(data))
