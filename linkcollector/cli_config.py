"""Configuration loading helpers for CLI entrypoints."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "linkcollector"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"
EXAMPLE_ENV_FILE = Path(__file__).parent.parent / ".env.example"


def load_env_config(
    *,
    cwd: Path,
    config_env_file: Path = CONFIG_ENV_FILE,
    example_file: Path = EXAMPLE_ENV_FILE,
    load_env: Callable[[Path], bool] = load_dotenv,
    copy_file: Callable[[Path, Path], object] = shutil.copy,
) -> Optional[Path]:
    """Load .env configuration with fallback to the user config directory.

    Search order:
    1. .env in the current working directory
    2. ~/.config/linkcollector/.env

    If neither exists, ``.env.example`` is copied to the user config
    directory as a starting point. Returns the file that was loaded.
    """
    local_env = cwd / ".env"
    if local_env.is_file():
        load_env(local_env)
        return local_env

    if config_env_file.is_file():
        load_env(config_env_file)
        return config_env_file

    if not example_file.is_file():
        return None

    try:
        config_env_file.parent.mkdir(parents=True, exist_ok=True)
        copy_file(example_file, config_env_file)
    except OSError as exc:
        logging.debug("Could not create %s: %s", config_env_file, exc)
        return None

    logging.info(
        "Created config file at %s from .env.example. "
        "Edit it to change the default user agent, timeout or delay.",
        config_env_file,
    )
    load_env(config_env_file)
    return config_env_file
