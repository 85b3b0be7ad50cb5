import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, MutableMapping, Optional

from dotenv import dotenv_values

import mcphub.settings as default_settings
from mcphub.errors import ConfigurationError

log = logging.getLogger(__name__)


#* --- Environment Loader ---
def load_env_file(path: Path, environ: MutableMapping[str, str]) -> Dict[str, str]:
    """
    Merges a KEY=VALUE file into `environ` without overwriting values that are
    already set. Blank lines and `#` comments are ignored; statements that
    python-dotenv cannot parse are skipped with a warning. Values are taken
    literally: `${VAR}` is not expanded. An unquoted ` #` starts a comment, so
    values containing one must be quoted.

    :param path: The `.env` file to read. A missing file is not an error.
    :param environ: The mapping to update, usually a copy of `os.environ`.
    :return: The keys and values that were actually applied.
    """
    if not path.exists():
        log.debug(f"No environment file at '{path}'. Using the process environment only.")
        return {}

    applied: Dict[str, str] = {}
    for key, value in dotenv_values(path, interpolate=False).items():
        if value is None:
            log.warning(f"Skipping malformed line in '{path}': '{key}' has no '=' separator.")
            continue
        if environ.get(key):
            # First writer wins; the real environment beats the file.
            continue
        environ[key] = value
        applied[key] = value

    log.info(f"Loaded {len(applied)} value(s) from environment file '{path}'.")
    return applied


def _coerce_int(environ: Mapping[str, str], name: str, default: int, minimum: int, maximum: Optional[int] = None) -> int:
    """Reads an integer setting, raising ConfigurationError if it is malformed or out of range."""
    raw = environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'.") from None
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ConfigurationError(f"{name} must be {bounds}, got {value}.")
    return value


def _optional_path(environ: Mapping[str, str], name: str) -> Optional[Path]:
    raw = environ.get(name)
    return Path(raw) if raw else None


def _default_adapter_bin(base_dir: Path) -> str:
    """Prefers a project-local supergateway install over one on PATH."""
    local_bin = base_dir / "node_modules" / ".bin" / "supergateway"
    if local_bin.exists():
        return str(local_bin)
    return default_settings.ADAPTER_BIN


#* --- Hub Configuration ---
@dataclass(frozen=True)
class HubConfig:
    """
    The configuration for one hub run, built once at startup and passed
    explicitly to the launcher and settings generator.

    `environ` is the base environment every child inherits. It is a snapshot,
    so nothing in the hub reads `os.environ` after startup.
    """
    host: str = default_settings.HOST
    base_port: int = default_settings.BASE_PORT
    public_host: str = default_settings.PUBLIC_HOST
    adapter_bin: str = default_settings.ADAPTER_BIN
    output_transport: str = default_settings.OUTPUT_TRANSPORT
    health_path: str = default_settings.HEALTH_PATH
    mount_path: str = default_settings.MOUNT_PATH
    startup_timeout_ms: int = default_settings.STARTUP_TIMEOUT_MS
    batch_size: int = default_settings.BATCH_SIZE
    settings_path: Path = Path(default_settings.SETTINGS_FILE_NAME)
    settings_style: str = default_settings.SETTINGS_STYLE
    registry_path: Optional[Path] = None
    log_file: Optional[Path] = None
    environ: Dict[str, str] = field(default_factory=dict, repr=False)

    @property
    def startup_timeout(self) -> float:
        """The startup window in seconds."""
        return self.startup_timeout_ms / 1000.0

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], base_dir: Optional[Path] = None) -> "HubConfig":
        """
        Builds the configuration from an environment mapping.

        :param environ: Environment values, typically `os.environ` merged with the `.env` file.
        :param base_dir: Directory used to resolve the default settings path and local adapter.
        :return: A validated HubConfig.
        """
        base_dir = base_dir or Path.cwd()
        names = default_settings.ENV_VARS

        style = (environ.get(names["settings_style"]) or default_settings.SETTINGS_STYLE).strip().lower()
        if style not in default_settings.SETTINGS_STYLES:
            raise ConfigurationError(
                f"{names['settings_style']} must be one of {', '.join(default_settings.SETTINGS_STYLES)}, got '{style}'."
            )

        settings_path = _optional_path(environ, names["settings_path"]) or base_dir / default_settings.SETTINGS_FILE_NAME

        return cls(
            host=environ.get(names["host"]) or default_settings.HOST,
            base_port=_coerce_int(environ, names["base_port"], default_settings.BASE_PORT, 1, 65535),
            public_host=environ.get(names["public_host"]) or default_settings.PUBLIC_HOST,
            adapter_bin=environ.get(names["adapter_bin"]) or _default_adapter_bin(base_dir),
            startup_timeout_ms=_coerce_int(environ, names["startup_timeout_ms"], default_settings.STARTUP_TIMEOUT_MS, 1),
            batch_size=_coerce_int(environ, names["batch_size"], default_settings.BATCH_SIZE, 1),
            settings_path=settings_path,
            settings_style=style,
            registry_path=_optional_path(environ, names["registry_path"]),
            log_file=_optional_path(environ, names["log_file"]),
            environ=dict(environ),
        )

    def describe(self) -> Dict[str, Any]:
        """Returns the non-secret settings, for debug logging."""
        return {
            "host": self.host,
            "base_port": self.base_port,
            "public_host": self.public_host,
            "adapter_bin": self.adapter_bin,
            "startup_timeout_ms": self.startup_timeout_ms,
            "batch_size": self.batch_size,
            "settings_path": str(self.settings_path),
            "settings_style": self.settings_style,
        }
