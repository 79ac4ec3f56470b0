"""Local input sources: credential, system prompt, user message.

Thin filesystem/stdin readers. The orchestrator never calls these; the
CLI resolves everything up front and hands plain strings over.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

from rlm.exceptions import ConfigError, InputDecodeError

logger = logging.getLogger(__name__)

APP_DIRNAME = "rapidllm"
PROMPTS_DIRNAME = "prompts"
SYSTEM_PROMPT_FILENAME = "system.md"
API_KEY_RELPATH = Path("openrouter") / "api_key"


def default_config_dir() -> Path:
    """Return ``$HOME/.config/rapidllm``.

    Raises:
        ConfigError: If HOME is not set.
    """
    home = os.environ.get("HOME")
    if not home:
        raise ConfigError("HOME environment variable not set.")
    return Path(home) / ".config" / APP_DIRNAME


def read_api_key(config_dir: Path) -> str:
    """Read the API key from ``<config_dir>/openrouter/api_key``.

    Surrounding whitespace (typically a trailing newline) is stripped.

    Raises:
        ConfigError: If the file is missing, unreadable, or empty.
    """
    path = Path(config_dir) / API_KEY_RELPATH
    try:
        key = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    if not key:
        raise ConfigError(f"API key file is empty: {path}")
    logger.debug("Read API key from %s", path)
    return key


def _read_if_exists(path: Path) -> str | None:
    """Read a text file, returning None only when it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not open file {path}: {exc}") from exc


def resolve_system_message(value: str, config_dir: Path) -> str:
    """Turn a ``--system`` value into the system prompt text.

    Resolution order:

    1. A value without ``/`` names a prompt directory:
       ``<config_dir>/prompts/<value>/system.md``. Values containing
       ``/`` skip this step, so they cannot escape the prompts directory.
    2. The value as a file path.
    3. The value itself, as literal prompt text.

    Only "not found" falls through to the next step.

    Raises:
        ConfigError: On any filesystem error other than "not found".
    """
    value = value.strip()

    if "/" not in value and value not in ("", ".", ".."):
        prompt_path = Path(config_dir) / PROMPTS_DIRNAME / value / SYSTEM_PROMPT_FILENAME
        content = _read_if_exists(prompt_path)
        if content is not None:
            logger.debug("System prompt from %s", prompt_path)
            return content

    if value:
        content = _read_if_exists(Path(value))
        if content is not None:
            logger.debug("System prompt from file %s", value)
            return content

    return value


def read_user_message(stream: BinaryIO) -> str:
    """Read the whole stream as UTF-8 and trim surrounding whitespace.

    Raises:
        InputDecodeError: If the stream is not valid UTF-8 or unreadable.
    """
    try:
        raw = stream.read()
    except OSError as exc:
        raise InputDecodeError(f"Could not read from stdin: {exc}") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InputDecodeError(f"Could not read from stdin: {exc}") from exc
    return text.strip()
