"""Configuration management for application settings."""

import logging
import os
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field, ValidationError

from .pdf_text import DEFAULT_MAX_BYTES, DEFAULT_TIMEOUT


DEFAULT_SETTINGS_FILE = "customer_records.yaml"
DEFAULT_DATA_DIR = os.path.join(os.path.expanduser("~"), ".customer_records")


class Settings(BaseModel):
    """Application settings."""

    data_dir: str = Field(
        DEFAULT_DATA_DIR,
        description="Directory holding customers.json and the customer_files folder."
    )
    conversion_timeout: float = Field(
        DEFAULT_TIMEOUT,
        gt=0,
        description="Seconds to wait for the text conversion of one PDF."
    )
    max_text_bytes: int = Field(
        DEFAULT_MAX_BYTES,
        gt=0,
        description="Maximum size of the text extracted from one PDF."
    )
    log_file: str = Field(
        "customer_records.log",
        description="Log file used in command line mode."
    )


def load_settings(filepath: str = DEFAULT_SETTINGS_FILE) -> Settings:
    """
    Load settings from a YAML file.

    If the file doesn't exist, it creates one with the default settings.

    Args:
        filepath: Path to the settings YAML file

    Returns:
        Validated settings
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logging.info(f"Settings file '{filepath}' not found. Creating a new one.")
        settings = Settings()
        save_settings(settings, filepath)
        return settings
    except yaml.YAMLError as e:
        logging.warning(f"Settings file '{filepath}' could not be parsed ({e}). Using defaults.")
        return Settings()

    if not isinstance(data, dict):
        logging.warning(f"Settings file '{filepath}' is empty or malformed. Using defaults.")
        return Settings()

    try:
        return Settings(**data)
    except ValidationError as e:
        logging.warning(f"Settings file '{filepath}' contains invalid values. Using defaults.\n{e}")
        return Settings()


def save_settings(settings: Settings, filepath: str = DEFAULT_SETTINGS_FILE) -> None:
    """
    Save settings back to the YAML file.

    Args:
        settings: Settings to save
        filepath: Path to the settings YAML file
    """
    try:
        with open(filepath, 'w', encoding='utf-8') as f:
            yaml.dump(settings.model_dump(), f, allow_unicode=True, sort_keys=False)
        logging.info(f"Successfully updated settings file: {filepath}")
    except OSError as e:
        logging.error(f"Error: Could not write to settings file. {e}")


def apply_overrides(settings: Settings, overrides: Dict[str, Any]) -> Settings:
    """
    Return a copy of the settings with the given non-None values replaced.

    Args:
        settings: Loaded settings
        overrides: Values from the command line, None meaning "not given"

    Returns:
        Updated settings
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=changes)
