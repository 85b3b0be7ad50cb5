import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from mcphub import settings as default_settings
from mcphub.config import HubConfig
from mcphub.registry import ServerDescriptor
from mcphub.supervisor.outcomes import Running, plan_launches

log = logging.getLogger(__name__)


def endpoint_url(config: HubConfig, port: int) -> str:
    return f"http://{config.public_host}:{port}{config.mount_path}"


def build_settings_document(entries: Iterable[Tuple[str, int]], config: HubConfig) -> Dict[str, Any]:
    """
    Builds the client settings document from (name, port) pairs.

    Entries are ordered by port, which is selection order, so the document does
    not depend on the order in which launches happened to finish.

    :param entries: Server names and their ports.
    :param config: Supplies the public host, mount path and settings style.
    :return: A mapping of the form {"mcpServers": {name: {...}}}.
    """
    servers: Dict[str, Dict[str, str]] = {}
    for name, port in sorted(entries, key=lambda entry: entry[1]):
        if config.settings_style == "typed":
            servers[name] = {"type": "http", "url": endpoint_url(config, port)}
        else:
            servers[name] = {"url": endpoint_url(config, port)}
    return {default_settings.SETTINGS_ROOT_KEY: servers}


def render_settings(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2) + "\n"


def write_settings(document: Dict[str, Any], path: Path) -> None:
    """Atomically replaces the settings file. Errors propagate to the caller."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        temp_path.write_text(render_settings(document), encoding="utf-8")
        temp_path.replace(path)
    finally:
        temp_path.unlink(missing_ok=True)


def generate_settings(
    config: HubConfig,
    running: Optional[Sequence[Running]] = None,
    selected: Optional[Sequence[ServerDescriptor]] = None,
) -> Path:
    """
    Writes the settings artifact and returns its path.

    With `running`, only servers that started are included, at their real
    ports. Without it (nothing was launched), ports are predicted for
    `selected` with the same `base_port + index` rule the launcher uses.
    """
    if running is not None:
        entries = [(outcome.name, outcome.port) for outcome in running]
    else:
        entries = [(plan.name, plan.port) for plan in plan_launches(selected or [], config.base_port)]

    document = build_settings_document(entries, config)
    write_settings(document, config.settings_path)
    log.info(f"Wrote {len(entries)} endpoint(s) to '{config.settings_path}'.")
    return config.settings_path
