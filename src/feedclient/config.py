"""Where feedclient keeps its files, and how the effective config is built.

Linux and the BSDs follow XDG: settings in ``$XDG_CONFIG_HOME/feedclient``
and session data in ``$XDG_DATA_HOME/feedclient``. Everywhere else both live
under ``~/.feedclient``, with data in a ``data/`` subdirectory.

The only settings file is ``config.json``, a serialised
:class:`~feedclient.models.ClientConfig`. :func:`resolve_config` layers the
``FEEDCLIENT_*`` environment variables and the ``--base-url`` flag on top
of it.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from feedclient.exceptions import ConfigError
from feedclient.models import ClientConfig

_APP_NAME = "feedclient"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "FEEDCLIENT_BASE_URL"
ENV_TIMEOUT = "FEEDCLIENT_TIMEOUT"

# XDG variable, its default under $HOME, and the subdirectory of ~/.feedclient
# used on other platforms.
_LOCATIONS = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "data": ("XDG_DATA_HOME", (".local", "share"), "data"),
}


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_default, fallback_sub = _LOCATIONS[kind]
    if _is_xdg_platform():
        root = os.environ.get(env_var) or str(Path.home().joinpath(*home_default))
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``. Created on first use."""
    return _app_dir("config")


def get_data_dir() -> Path:
    """Directory for durable session state and crash logs. Created on first use."""
    return _app_dir("data")


def get_credentials_dir(config: Optional[ClientConfig] = None) -> Path:
    """Directory of the on-disk credential store.

    ``config.credentials_dir`` takes priority; the default is a
    ``credentials`` folder inside :func:`get_data_dir`.
    """
    if config is not None and config.credentials_dir:
        path = Path(config.credentials_dir).expanduser()
    else:
        path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers see the old file or the new one, never half.

    The temp file sits next to *path*, which keeps ``os.replace`` a rename
    within one filesystem.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> ClientConfig:
    """Read ``config.json``; a missing file yields the defaults.

    Raises:
        ConfigError: The file is not JSON or does not validate.
    """
    path = _config_path()
    if not path.is_file():
        return ClientConfig()
    try:
        return ClientConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ClientConfig) -> None:
    _atomic_write(_config_path(), json.dumps(config.model_dump(mode="json"), indent=2) + "\n")


def _env_timeout() -> Optional[float]:
    raw = os.environ.get(ENV_TIMEOUT)
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_TIMEOUT} must be a number, got '{raw}'") from None
    if timeout <= 0:
        raise ConfigError(f"{ENV_TIMEOUT} must be positive, got '{raw}'")
    return timeout


def resolve_config(cli_base_url: Optional[str] = None) -> ClientConfig:
    """Build the effective config: ``--base-url`` > environment > file > defaults.

    Raises:
        ConfigError: Bad ``config.json`` or a non-positive ``FEEDCLIENT_TIMEOUT``.
    """
    config = load_config()

    timeout = _env_timeout()
    if timeout is not None:
        config.request.timeout = timeout

    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        config.base_url = base_url
    return config
