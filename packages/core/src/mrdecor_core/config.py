import logging
import os
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "gitlab_url": "https://gitlab.com",
    "summary_note_first": False,
    "summary_note_edit": False,
    "pipeline_id": None,
    "project_url": None,  # None = use the merge request's own web_url
    "server_url": None,  # None = use server_url from the analysis report
    "request_timeout": 30,
}


def load_config(config_path: str = ".mrdecor.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .mrdecor.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    config = apply_overrides(config, cli_overrides)

    # Resolve credentials and instance URL from environment variables
    config["gitlab_token"] = os.environ.get("GITLAB_TOKEN")
    env_url = os.environ.get("MRDECOR_GITLAB_URL")
    if env_url:
        config["gitlab_url"] = env_url

    config["pipeline_id"] = parse_pipeline_id(config.get("pipeline_id"))

    return config


def apply_overrides(config: dict, overrides: Optional[dict]) -> dict:
    """Return a copy of ``config`` with every non-None value of ``overrides`` applied."""
    merged = dict(config)
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def parse_pipeline_id(value) -> Optional[int]:
    """Return ``value`` as an int, or None if it is unset or not numeric."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        logger.warning("Ignoring non-numeric pipeline_id %r", value)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric pipeline_id %r", value)
        return None
