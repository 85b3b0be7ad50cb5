"""
The server registry: the static table of MCP servers the hub can launch.

Each entry is a ServerDescriptor. The built-in table mirrors the servers the
hub ships with; a YAML file can replace it entirely. Credential values are
looked up in the environment mapping passed in, never read from `os.environ`.
"""
import re
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from mcphub.errors import ConfigurationError

log = logging.getLogger(__name__)

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")


@dataclass(frozen=True)
class ServerDescriptor:
    """One launchable stdio server: how to run it and which variables it needs."""
    name: str
    command: str
    args: Tuple[str, ...] = ()
    env: Dict[str, Optional[str]] = field(default_factory=dict, hash=False)

    def effective_env(self) -> Dict[str, str]:
        """Returns the env overrides with absent or empty values left out."""
        return {key: str(value) for key, value in self.env.items() if value not in (None, "")}

    def invocation(self) -> str:
        """The stdio command line handed to the adapter, as one space-joined string."""
        return " ".join([self.command, *self.args])


def _server(name: str, command: str, args: Sequence[str], env: Optional[Dict[str, Optional[str]]] = None) -> ServerDescriptor:
    return ServerDescriptor(name=name, command=command, args=tuple(args), env=dict(env or {}))


def get_servers(environ: Mapping[str, str]) -> List[ServerDescriptor]:
    """
    Returns the built-in server table, in launch order.

    :param environ: Environment used to resolve credential and connection values.
    """
    e = environ.get
    here = Path(__file__).resolve().parent.parent

    return [
        #* --- Core Dev Tools ---
        _server("filesystem", "npx", ["-y", "@modelcontextprotocol/server-filesystem", "/data"]),
        _server("git", "npx", ["-y", "@modelcontextprotocol/server-git"]),
        _server("github", "npx", ["-y", "@modelcontextprotocol/server-github"], {"GITHUB_PERSONAL_ACCESS_TOKEN": e("GITHUB_TOKEN")}),
        _server("memory", "npx", ["-y", "@modelcontextprotocol/server-memory"]),
        _server("sequential-thinking", "npx", ["-y", "@modelcontextprotocol/server-sequential-thinking"]),
        _server("fetch", "npx", ["-y", "@modelcontextprotocol/server-fetch"]),
        _server("time", "npx", ["-y", "@modelcontextprotocol/server-time"]),
        _server("docker", "npx", ["-y", "mcp-server-docker"]),

        #* --- Databases ---
        _server("postgres", "npx", ["-y", "@modelcontextprotocol/server-postgres", e("POSTGRES_CONNECTION_STRING") or ""]),
        _server("sqlite", "npx", ["-y", "@modelcontextprotocol/server-sqlite", "--db-path", e("SQLITE_DB_PATH") or "/data/sqlite"]),
        _server("mongodb", "npx", ["-y", "mcp-mongo-server"], {"MONGODB_URI": e("MONGODB_CONNECTION_STRING")}),
        _server("redis", "npx", ["-y", "@modelcontextprotocol/server-redis", e("REDIS_URL") or "redis://localhost:6379"]),

        #* --- Cloud & Infrastructure ---
        _server("cloudflare", "npx", ["-y", "@cloudflare/mcp-server-cloudflare"], {"CLOUDFLARE_API_TOKEN": e("CLOUDFLARE_API_TOKEN"), "CLOUDFLARE_ACCOUNT_ID": e("CLOUDFLARE_ACCOUNT_ID")}),
        _server("terraform", "npx", ["-y", "@hashicorp/terraform-mcp-server"], {"TFC_TOKEN": e("TFC_TOKEN")}),
        _server("kubernetes", "npx", ["-y", "mcp-server-kubernetes"]),
        _server("localstack", "npx", ["-y", "localstack-mcp-server"]),

        #* --- Browser & Web Automation ---
        _server("playwright", "npx", ["-y", "@anthropic/mcp-server-playwright"]),
        _server("puppeteer", "npx", ["-y", "@modelcontextprotocol/server-puppeteer"]),
        _server("brave-search", "npx", ["-y", "@modelcontextprotocol/server-brave-search"], {"BRAVE_API_KEY": e("BRAVE_API_KEY")}),
        _server("pagemap", "npx", ["-y", "pagemap-mcp"]),

        #* --- Communication & Collaboration ---
        _server("slack", "npx", ["-y", "@modelcontextprotocol/server-slack"], {"SLACK_BOT_TOKEN": e("SLACK_BOT_TOKEN"), "SLACK_TEAM_ID": e("SLACK_TEAM_ID")}),
        _server("discord", "npx", ["-y", "mcp-discord"], {"DISCORD_TOKEN": e("DISCORD_BOT_TOKEN")}),
        _server("notion", "npx", ["-y", "notion-mcp-server"], {"NOTION_API_KEY": e("NOTION_API_KEY")}),

        #* --- Creative & Design ---
        _server("figma", "npx", ["-y", "@anthropic/figma-mcp-server"], {"FIGMA_ACCESS_TOKEN": e("FIGMA_ACCESS_TOKEN")}),
        _server("blender", "uvx", ["blender-mcp"]),
        _server("ableton", "uvx", ["ableton-mcp"]),
        _server("reaper", "npx", ["-y", "reaper-mcp"]),
        _server("svgmaker", "npx", ["-y", "svgmaker-mcp"]),
        _server("manim", "uvx", ["manim-mcp-server"]),
        _server("davinci-resolve", "npx", ["-y", "davinci-resolve-mcp"]),

        #* --- Smart Home & IoT ---
        _server("home-assistant", "uvx", ["ha-mcp"], {"HASS_URL": e("HASS_URL"), "HASS_TOKEN": e("HASS_TOKEN")}),

        #* --- Finance & Crypto ---
        _server("coingecko", "npx", ["-y", "coingecko-mcp-server"], {"COINGECKO_API_KEY": e("COINGECKO_API_KEY")}),
        _server("alpaca", "npx", ["-y", "@alpacahq/alpaca-mcp-server"], {"ALPACA_API_KEY": e("ALPACA_API_KEY"), "ALPACA_API_SECRET": e("ALPACA_API_SECRET"), "ALPACA_PAPER": e("ALPACA_PAPER")}),
        _server("crypto-trading", "npx", ["-y", "crypto-trading-mcp"]),
        _server("crypto-portfolio", "uvx", ["crypto-portfolio-mcp"]),
        _server("alphavantage", "npx", ["-y", "alphavantage-mcp"], {"ALPHAVANTAGE_API_KEY": e("ALPHAVANTAGE_API_KEY")}),
        _server("bankless-onchain", "npx", ["-y", "@bankless/onchain-mcp"]),

        #* --- Monitoring & Observability ---
        _server("sentry", "npx", ["-y", "@sentry/mcp-server"], {"SENTRY_AUTH_TOKEN": e("SENTRY_AUTH_TOKEN"), "SENTRY_ORG": e("SENTRY_ORG")}),
        _server("axiom", "npx", ["-y", "@axiom/mcp-server"], {"AXIOM_API_TOKEN": e("AXIOM_API_TOKEN"), "AXIOM_ORG_ID": e("AXIOM_ORG_ID")}),

        #* --- Data & APIs ---
        _server("anyquery", "npx", ["-y", "anyquery-mcp"]),
        _server("pipedream", "npx", ["-y", "@pipedream/mcp-server"]),
        _server("apify", "npx", ["-y", "apify-mcp-server"], {"APIFY_API_TOKEN": e("APIFY_API_TOKEN")}),
        _server("e2b", "npx", ["-y", "e2b-mcp-server"], {"E2B_API_KEY": e("E2B_API_KEY")}),
        _server("mindsdb", "uvx", ["mindsdb-mcp-server"]),

        #* --- AI Model Bridges ---
        _server("ollama-assistant", "node", [str(here / "servers" / "ollama-assistant" / "index.js")], {"OLLAMA_HOST": e("OLLAMA_HOST"), "OLLAMA_MODEL": e("OLLAMA_MODEL")}),
        _server("ollama-bridge", "npx", ["-y", "mcp-server-ollama-bridge"], {"OLLAMA_HOST": e("OLLAMA_HOST")}),
        _server("openai-bridge", "npx", ["-y", "mcp-server-openai-bridge"], {"OPENAI_API_KEY": e("OPENAI_API_KEY")}),
        _server("gemini-bridge", "npx", ["-y", "mcp-server-gemini-bridge"], {"GOOGLE_API_KEY": e("GOOGLE_API_KEY")}),
        _server("openai-image", "npx", ["-y", "openai-gpt-image-mcp"], {"OPENAI_API_KEY": e("OPENAI_API_KEY")}),
        _server("google-imagen", "npx", ["-y", "imagen3-mcp"], {"GOOGLE_API_KEY": e("GOOGLE_API_KEY")}),

        #* --- Gaming & Game Dev ---
        _server("aseprite", "npx", ["-y", "aseprite-mcp"]),

        #* --- DevOps & Code Quality ---
        _server("atlassian", "npx", ["-y", "@atlassian/mcp-server"], {"ATLASSIAN_URL": e("ATLASSIAN_URL"), "ATLASSIAN_EMAIL": e("ATLASSIAN_EMAIL"), "ATLASSIAN_API_TOKEN": e("ATLASSIAN_API_TOKEN")}),
        _server("azure-devops", "npx", ["-y", "azure-devops-mcp"], {"AZURE_DEVOPS_ORG": e("AZURE_DEVOPS_ORG"), "AZURE_DEVOPS_TOKEN": e("AZURE_DEVOPS_TOKEN")}),
        _server("gitlab", "npx", ["-y", "@modelcontextprotocol/server-gitlab"], {"GITLAB_TOKEN": e("GITLAB_TOKEN"), "GITLAB_URL": e("GITLAB_URL")}),

        #* --- Misc Power Tools ---
        _server("youtube-transcript", "npx", ["-y", "mcp-server-youtube-transcript"]),
        _server("spotify", "npx", ["-y", "spotify-mcp"], {"SPOTIFY_CLIENT_ID": e("SPOTIFY_CLIENT_ID"), "SPOTIFY_CLIENT_SECRET": e("SPOTIFY_CLIENT_SECRET")}),
        _server("open-library", "npx", ["-y", "mcp-open-library"]),
        _server("tmdb", "npx", ["-y", "wizzy-mcp-tmdb"], {"TMDB_API_KEY": e("TMDB_API_KEY")}),
        _server("personalization", "uvx", ["personalization-mcp"]),

        #* --- Meta / Infrastructure ---
        _server("everything", "npx", ["-y", "@modelcontextprotocol/server-everything"]),
        _server("forage", "npx", ["-y", "forage-mcp"]),
    ]


#* --- YAML Registry Files ---
def _resolve_references(value: Any, environ: Mapping[str, str]) -> Optional[str]:
    """
    Expands ${VAR} and ${VAR:-default} references against `environ`.
    Returns None when the whole value is a single reference that resolves to nothing.
    """
    if value is None:
        return None
    text = str(value)
    match = _ENV_REFERENCE.fullmatch(text)
    if match:
        resolved = environ.get(match.group("name")) or match.group("default")
        return resolved or None

    return _ENV_REFERENCE.sub(lambda m: environ.get(m.group("name")) or m.group("default") or "", text)


def _parse_entry(index: int, entry: Any, environ: Mapping[str, str], source: Path) -> ServerDescriptor:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Entry #{index + 1} in '{source}' is not a mapping.")

    name, command = entry.get("name"), entry.get("command")
    if not name or not command:
        raise ConfigurationError(f"Entry #{index + 1} in '{source}' needs both 'name' and 'command'.")

    args = entry.get("args") or []
    if not isinstance(args, list):
        raise ConfigurationError(f"Server '{name}' in '{source}': 'args' must be a list.")

    env = entry.get("env") or {}
    if not isinstance(env, dict):
        raise ConfigurationError(f"Server '{name}' in '{source}': 'env' must be a mapping.")

    return ServerDescriptor(
        name=str(name),
        command=str(command),
        args=tuple(_resolve_references(arg, environ) or "" for arg in args),
        env={str(key): _resolve_references(value, environ) for key, value in env.items()},
    )


def load_registry_file(path: Path, environ: Mapping[str, str]) -> List[ServerDescriptor]:
    """
    Loads a server table from a YAML file shaped as `servers: [{name, command, args, env}]`.

    :param path: The YAML registry file.
    :param environ: Environment used to resolve ${VAR} references.
    :return: The descriptors in file order.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read registry file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Registry file '{path}' is not valid YAML: {e}") from e

    entries = document.get("servers") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise ConfigurationError(f"Registry file '{path}' must contain a top-level 'servers' list.")

    servers = [_parse_entry(i, entry, environ, path) for i, entry in enumerate(entries)]
    log.info(f"Loaded {len(servers)} server definition(s) from '{path}'.")
    return servers


def validate_unique_names(servers: Sequence[ServerDescriptor]) -> None:
    """Raises ConfigurationError if two descriptors share a name."""
    seen = set()
    duplicates = []
    for server in servers:
        if server.name in seen and server.name not in duplicates:
            duplicates.append(server.name)
        seen.add(server.name)
    if duplicates:
        raise ConfigurationError(f"Duplicate server name(s) in registry: {', '.join(duplicates)}")


def load_registry(environ: Mapping[str, str], registry_path: Optional[Path] = None) -> List[ServerDescriptor]:
    """Returns the registry to use for this run, validated."""
    servers = load_registry_file(registry_path, environ) if registry_path else get_servers(environ)
    validate_unique_names(servers)
    return servers
