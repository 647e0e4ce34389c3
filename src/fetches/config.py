"""Loading client configuration from files and the environment.

Configuration for the ``fetches`` command line comes from four layers:

* **Defaults** -- the field defaults of :class:`~fetches.models.FetchesConfig`.
* **Config file** -- a JSON or YAML document, either passed explicitly
  (``--config``, ``FETCHES_CONFIG``) or found in the working directory as
  ``fetches.json``, ``fetches.yaml`` or ``fetches.yml``.
* **Environment variables** -- ``FETCHES_BASE_URL`` and ``FETCHES_TIMEOUT``.
* **CLI flags** -- ``--base-url`` and ``--timeout``.

:func:`resolve_config` merges them in that order, later layers winning.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from fetches.exceptions import FetchesConfigurationError
from fetches.models import FetchesConfig

_PROJECT_CONFIG_FILENAMES = ("fetches.json", "fetches.yaml", "fetches.yml")

ENV_BASE_URL = "FETCHES_BASE_URL"
ENV_TIMEOUT = "FETCHES_TIMEOUT"
ENV_CONFIG = "FETCHES_CONFIG"


def _read_document(path: Path) -> dict[str, Any]:
    """Parse a JSON or YAML file into a mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FetchesConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise FetchesConfigurationError(f"Invalid config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FetchesConfigurationError(
            f"Invalid config file {path}: expected a mapping, got {type(data).__name__}"
        )
    return data


def load_config_file(path: Union[str, Path]) -> FetchesConfig:
    """Load a :class:`FetchesConfig` from a JSON or YAML file.

    The format is chosen by extension: ``.yaml``/``.yml`` are parsed with
    PyYAML, anything else as JSON.

    Raises:
        FetchesConfigurationError: If the file is missing, unparsable, or
            fails validation.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise FetchesConfigurationError(f"Config file not found: {path}")
    data = _read_document(path)
    try:
        return FetchesConfig.model_validate(data)
    except ValidationError as exc:
        raise FetchesConfigurationError(f"Invalid config file {path}: {exc}") from exc


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from the working directory.

    Looks for ``fetches.json``, ``fetches.yaml`` and ``fetches.yml`` in that
    order and parses the first one found.

    Returns:
        The parsed document, or ``None`` if no project config exists.
    """
    for name in _PROJECT_CONFIG_FILENAMES:
        path = Path.cwd() / name
        if path.is_file():
            return _read_document(path)
    return None


def _env_timeout() -> Optional[float]:
    raw = os.environ.get(ENV_TIMEOUT)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise FetchesConfigurationError(
            f"{ENV_TIMEOUT} must be a number of milliseconds, got {raw!r}"
        ) from exc


def resolve_config(
    config_path: Optional[Union[str, Path]] = None,
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> FetchesConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_timeout``)
        2. Environment variables (``FETCHES_BASE_URL``, ``FETCHES_TIMEOUT``)
        3. Config file (``config_path``, else ``FETCHES_CONFIG``, else the
           project config in the working directory)
        4. Defaults

    Raises:
        FetchesConfigurationError: If any layer holds an invalid value.
    """
    file_path = config_path or os.environ.get(ENV_CONFIG)
    if file_path:
        data = load_config_file(file_path).model_dump(exclude_unset=True)
    else:
        data = load_project_config() or {}

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        data["base_url"] = env_base_url
    env_timeout = _env_timeout()
    if env_timeout is not None:
        data["timeout"] = env_timeout

    if cli_base_url is not None:
        data["base_url"] = cli_base_url
    if cli_timeout is not None:
        data["timeout"] = cli_timeout

    try:
        return FetchesConfig.model_validate(data)
    except ValidationError as exc:
        raise FetchesConfigurationError(f"Invalid configuration: {exc}") from exc
