#!/usr/bin/env python3
"""
Configuration management for the archive importer.

Handles output location, schema script, and logging settings.
"""
import json
import logging
from pathlib import Path

CONFIG_FILE = Path(__file__).parent / "import_config.json"

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "schema.sql"

DEFAULT_CONFIG = {
    "output_path": "conversations.db",          # SQLite database to write
    "schema_path": str(DEFAULT_SCHEMA_PATH),    # DDL applied before import
    "conversations_entry": "conversations.json",  # document inside the zip
    "log_level": "WARNING"                      # DEBUG shows tolerated oddities
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config() -> dict:
    """
    Load configuration from import_config.json.
    Creates file with defaults if it doesn't exist.
    Raises ValueError for malformed contents and OSError when unreadable.
    """
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, 'r') as f:
            config = json.load(f)
        if not isinstance(config, dict):
            raise ValueError(f"{CONFIG_FILE} must contain a JSON object")
        # Merge with defaults to handle new config options
        merged = {**DEFAULT_CONFIG, **config}
        return merged
    else:
        save_config(DEFAULT_CONFIG)
        return DEFAULT_CONFIG.copy()


def save_config(config: dict) -> None:
    """Save configuration to import_config.json."""
    with open(CONFIG_FILE, 'w') as f:
        json.dump(config, f, indent=2)


def validate_config(config: dict = None) -> tuple[bool, str]:
    """
    Validate configuration is complete and usable.
    Returns (is_valid, error_message).
    """
    if config is None:
        config = load_config()

    level = str(config.get("log_level", "")).upper()
    if level not in LOG_LEVELS:
        return False, f"Invalid log_level: {config.get('log_level')}. Must be one of {', '.join(LOG_LEVELS)}"

    if not config.get("output_path"):
        return False, "No output_path specified in config"

    if not config.get("conversations_entry"):
        return False, "No conversations_entry specified in config"

    schema_path = config.get("schema_path")
    if not schema_path:
        return False, "No schema_path specified in config"
    if not Path(schema_path).is_file():
        return False, f"Schema script not found: {schema_path}"

    return True, ""


def configure_logging(config: dict, verbose: bool = False) -> None:
    """Set up root logging from the config's log_level."""
    level = "DEBUG" if verbose else str(config.get("log_level", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s"
    )


if __name__ == "__main__":
    # Show current config when run directly
    config = load_config()
    print("Current configuration:")
    print(json.dumps(config, indent=2))

    is_valid, error = validate_config(config)
    if is_valid:
        print("\nConfiguration is valid.")
    else:
        print(f"\nConfiguration error: {error}")
