"""Configuration management for the import server."""

import json
import os
import re
from dataclasses import dataclass, field

DEFAULT_RULES_FILE = ".quicken.yaml"
DEFAULT_MAX_FILES = 9000
DEFAULT_HISTORY = 10

QUOTE_STYLES = ["single", "double", "auto"]
SEMICOLON_STYLES = ["always", "never", "auto"]
NAMING_CONVENTIONS = ["camelCase", "snake_case", "lowercase", "as-is"]


def _predefined_names_from_environment() -> dict[str, str]:
    raw = os.getenv("QUICKEN_PREDEFINED_NAMES")
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"QUICKEN_PREDEFINED_NAMES must be a JSON object: {e}") from e


@dataclass
class ImportServerConfig:
    """Configuration class for the import server."""

    # Project Configuration
    rules_file: str = DEFAULT_RULES_FILE
    max_files: int = DEFAULT_MAX_FILES

    # Statement Formatting
    quotes: str = "auto"
    semicolons: str = "auto"
    indent: str = "tab"  # "tab" or a number of spaces
    prefer_index_file: bool = True
    group_imports: bool = True  # Extend existing statements of the same module

    # Binding Names
    naming_convention: str = "camelCase"
    predefined_names: dict[str, str] = field(default_factory=dict)  # Name or "/regex/flags" -> binding

    # Recent Selections
    history: int = DEFAULT_HISTORY  # Remembered selections per language, 0 disables
    history_file: str | None = None  # JSON file keeping selections across restarts

    # Runtime Configuration
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "ImportServerConfig":
        """Create configuration from environment variables."""
        return cls(
            rules_file=os.getenv("QUICKEN_RULES_FILE", DEFAULT_RULES_FILE),
            max_files=int(os.getenv("QUICKEN_MAX_FILES", str(DEFAULT_MAX_FILES))),
            quotes=os.getenv("QUICKEN_QUOTES", "auto").lower(),
            semicolons=os.getenv("QUICKEN_SEMICOLONS", "auto").lower(),
            indent=os.getenv("QUICKEN_INDENT", "tab").lower(),
            prefer_index_file=os.getenv("QUICKEN_PREFER_INDEX_FILE", "true").lower() == "true",
            group_imports=os.getenv("QUICKEN_GROUP_IMPORTS", "true").lower() == "true",
            naming_convention=os.getenv("QUICKEN_NAMING_CONVENTION", "camelCase"),
            predefined_names=_predefined_names_from_environment(),
            history=int(os.getenv("QUICKEN_HISTORY", str(DEFAULT_HISTORY))),
            history_file=os.getenv("QUICKEN_HISTORY_FILE") or None,
            log_level=os.getenv("QUICKEN_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration settings."""
        errors = []

        if not self.rules_file:
            errors.append("rules_file cannot be empty")

        if self.max_files <= 0:
            errors.append("max_files must be positive")

        if self.quotes not in QUOTE_STYLES:
            errors.append(f"quotes must be one of {QUOTE_STYLES}")

        if self.semicolons not in SEMICOLON_STYLES:
            errors.append(f"semicolons must be one of {SEMICOLON_STYLES}")

        if self.indent != "tab" and not (self.indent.isdigit() and int(self.indent) > 0):
            errors.append("indent must be 'tab' or a positive number of spaces")

        if self.naming_convention not in NAMING_CONVENTIONS:
            errors.append(f"naming_convention must be one of {NAMING_CONVENTIONS}")

        if not isinstance(self.predefined_names, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in self.predefined_names.items()
        ):
            errors.append("predefined_names must map strings to strings")
        else:
            for key in self.predefined_names:
                if key.startswith("/") and "/" in key[1:]:
                    try:
                        re.compile(key[1:].rsplit("/", 1)[0])
                    except re.error as e:
                        errors.append(f"predefined_names pattern {key!r} is invalid: {e}")

        if self.history < 0:
            errors.append("history cannot be negative")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            errors.append(f"log_level must be one of {valid_log_levels}")

        return len(errors) == 0, errors

    def __post_init__(self):
        """Post-initialization validation."""
        is_valid, errors = self.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(errors)}")

    @property
    def indent_unit(self) -> str:
        return "\t" if self.indent == "tab" else " " * int(self.indent)


# Global configuration instance
_config: ImportServerConfig | None = None


def get_config() -> ImportServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ImportServerConfig.from_environment()
    return _config


def set_config(config: ImportServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
