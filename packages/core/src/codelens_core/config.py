import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "store": "sqlite",  # "sqlite" | "memory" | "gist"
    "store_path": ".codelens.db",
    "gist_id": None,
    "max_chars": 60000,  # longer code is refused before it reaches the AI
    "user": None,  # e-mail of the acting user; CODELENS_USER wins when set
}


def load_config(config_path: str = ".codelens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .codelens.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials and identity from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    if os.environ.get("CODELENS_USER"):
        config["user"] = os.environ["CODELENS_USER"]

    return config


def load_style_guide(path: str) -> str:
    """Read a project style guide from disk (relative to cwd)."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Style guide file not found: {path}")
    return p.read_text()
