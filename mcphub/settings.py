"""
This module contains the default configuration values for the MCP Gateway Hub.
Nothing here reads the process environment; `mcphub.config.HubConfig` combines
these defaults with the environment (and `.env` file) once at startup.
"""

#* --- File Names ---
# Resolved against the working directory at startup.
ENV_FILE_NAME = ".env"
SETTINGS_FILE_NAME = "claude-settings.json"

#* --- Network Settings ---
HOST = "0.0.0.0"
BASE_PORT = 3170
PUBLIC_HOST = "192.168.1.7"

#* --- Adapter (supergateway) Settings ---
ADAPTER_BIN = "supergateway"
OUTPUT_TRANSPORT = "streamableHttp"
HEALTH_PATH = "/health"
MOUNT_PATH = "/mcp"

#* --- Launcher Settings ---
# A child still alive after this long is recorded as running. This is a
# heuristic: the adapter gives no readiness acknowledgment on stdio.
STARTUP_TIMEOUT_MS = 5000
BATCH_SIZE = 10
SUPERVISOR_SLEEP_INTERVAL = 2  # seconds
STDERR_TAIL_LINES = 200
EARLY_EXIT_EXCERPT_LINES = 3
LATE_EXIT_EXCERPT_LINES = 10

#* --- Settings Artifact ---
SETTINGS_ROOT_KEY = "mcpServers"
SETTINGS_STYLES = ("url", "typed")
SETTINGS_STYLE = "url"

#* --- Process Identity ---
PROCESS_TITLE = "MCP Hub - Orchestrator"

#* --- Environment Variable Names ---
# Maps each HubConfig field to the variable that overrides it.
ENV_VARS = {
    "host": "MCP_HOST",
    "base_port": "MCP_BASE_PORT",
    "public_host": "MCP_PUBLIC_HOST",
    "adapter_bin": "MCP_ADAPTER_BIN",
    "startup_timeout_ms": "MCP_STARTUP_TIMEOUT_MS",
    "batch_size": "MCP_BATCH_SIZE",
    "settings_path": "MCP_SETTINGS_PATH",
    "settings_style": "MCP_SETTINGS_STYLE",
    "registry_path": "MCP_REGISTRY_PATH",
    "log_file": "MCP_LOG_FILE",
}
