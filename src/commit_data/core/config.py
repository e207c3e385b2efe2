"""Configuration for decoding commit records."""

import codecs
import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError, field_validator

from commit_data.core.errors import ConfigError

CONFIG_FILE_NAME = ".commit-data.json"


class CommitDataConfig(BaseModel):
    """Settings shared by the decoders and the command line."""

    # Used when a record declares no encoding, and for author/committer names
    default_encoding: str = "utf-8"
    # Codec error handler applied when re-decoding lossless text
    decode_errors: str = "replace"

    model_config = {"frozen": True}

    @field_validator("default_encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {value}") from e
        return value

    @field_validator("decode_errors")
    @classmethod
    def _known_error_handler(cls, value: str) -> str:
        try:
            codecs.lookup_error(value)
        except LookupError as e:
            raise ValueError(f"Unknown codec error handler: {value}") from e
        return value


def load_config(
    path: Optional[Path] = None, search_dir: Optional[Path] = None
) -> CommitDataConfig:
    """Load configuration from a JSON file.

    An explicit ``path`` must exist. Without one, ``.commit-data.json`` in
    ``search_dir`` (default: the current directory) is used when present,
    otherwise the defaults apply.
    """
    if path is None:
        candidate = Path(search_dir or Path.cwd()) / CONFIG_FILE_NAME
        if not candidate.exists():
            return CommitDataConfig()
        path = candidate
    elif not Path(path).exists():
        raise ConfigError(f"Config file not found: {path}", {"path": str(path)})

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}", {"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config in {path} must be a JSON object", {"path": str(path)})

    try:
        return CommitDataConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}", {"path": str(path)}) from e
