import os
from pathlib import Path

from mcphub.config import HubConfig
from mcphub.registry import ServerDescriptor


def make_config(tmp_path: Path, **overrides) -> HubConfig:
    """A HubConfig for tests: short startup window, settings file under tmp_path."""
    values = dict(
        base_port=4000,
        public_host="10.1.2.3",
        startup_timeout_ms=500,
        batch_size=10,
        settings_path=tmp_path / "claude-settings.json",
        environ=dict(os.environ),
    )
    values.update(overrides)
    return HubConfig(**values)


def server(name: str, command: str, *args: str, **env) -> ServerDescriptor:
    return ServerDescriptor(name=name, command=command, args=tuple(args), env=dict(env))
