"""Runtime settings for the importer."""

import json
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Dict

from .errors import ConfigurationInconsistency


@dataclass
class ImporterSettings:
    """Settings shared by the CLI, the API and the record sources."""
    config_dir: str = "./config"
    temp_dir: str = ""  # Empty means the system temp directory

    # CSV dialect
    csv_delimiter: str = ","
    csv_enclosure: str = '"'
    csv_escape: str = ""  # Empty means no escape character

    # Reject transform plugin ids missing from the registry
    strict_plugins: bool = False

    log_level: str = "INFO"

    # Remote file references
    http_retries: int = 3
    http_backoff: float = 2.0

    def __post_init__(self):
        if not self.temp_dir:
            self.temp_dir = tempfile.gettempdir()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "config_dir": self.config_dir,
            "temp_dir": self.temp_dir,
            "csv_delimiter": self.csv_delimiter,
            "csv_enclosure": self.csv_enclosure,
            "csv_escape": self.csv_escape,
            "strict_plugins": self.strict_plugins,
            "log_level": self.log_level,
            "http_retries": self.http_retries,
            "http_backoff": self.http_backoff,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImporterSettings":
        """Create from dictionary representation."""
        return cls(
            config_dir=data.get("config_dir", "./config"),
            temp_dir=data.get("temp_dir", ""),
            csv_delimiter=data.get("csv_delimiter", ","),
            csv_enclosure=data.get("csv_enclosure", '"'),
            csv_escape=data.get("csv_escape", ""),
            strict_plugins=data.get("strict_plugins", False),
            log_level=data.get("log_level", "INFO"),
            http_retries=data.get("http_retries", 3),
            http_backoff=data.get("http_backoff", 2.0),
        )

    @classmethod
    def from_env(cls) -> "ImporterSettings":
        """Create from IMPORTER_* environment variables."""
        return cls(
            config_dir=os.environ.get("IMPORTER_CONFIG_DIR", "./config"),
            temp_dir=os.environ.get("IMPORTER_TEMP_DIR", ""),
            csv_delimiter=os.environ.get("IMPORTER_CSV_DELIMITER", ","),
            strict_plugins=_parse_bool(os.environ.get("IMPORTER_STRICT_PLUGINS", "false")),
            log_level=os.environ.get("IMPORTER_LOG_LEVEL", "INFO").upper(),
            http_retries=_parse_int("IMPORTER_HTTP_RETRIES", os.environ.get("IMPORTER_HTTP_RETRIES", "3")),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "ImporterSettings":
        """Load settings from a JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationInconsistency(
            f"Invalid {name} value: expected integer, got '{value}'",
            offending_id=name,
        ) from e
