"""
Tests for the command-line entry point.
"""

import json

import pytest

from mcphub import main as hub_main

pytestmark = pytest.mark.usefixtures("restore_root_logging")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Runs main() from an empty directory with no MCP_* variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("MCP_HOST", "MCP_BASE_PORT", "MCP_PUBLIC_HOST", "MCP_ADAPTER_BIN", "MCP_STARTUP_TIMEOUT_MS",
                 "MCP_BATCH_SIZE", "MCP_SETTINGS_PATH", "MCP_SETTINGS_STYLE", "MCP_REGISTRY_PATH", "MCP_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(hub_main, "install_signal_handlers", lambda stop_event=None: None)
    return tmp_path


def test_list_prints_registry(clean_env, capsys):
    assert hub_main.main(["--list"]) == 0

    out = capsys.readouterr().out
    assert "Available MCP servers" in out
    assert "filesystem" in out
    assert not (clean_env / "claude-settings.json").exists()


def test_generate_uses_selection_and_env_file(clean_env, capsys):
    (clean_env / ".env").write_text("MCP_BASE_PORT=4000\nMCP_PUBLIC_HOST=10.0.0.5\n")
    output = clean_env / "out" / "settings.json"

    code = hub_main.main(["--env-file", str(clean_env / ".env"), "--generate", "--only", "github,git", "--output", str(output)])

    assert code == 0
    assert json.loads(output.read_text()) == {
        "mcpServers": {
            "git": {"url": "http://10.0.0.5:4000/mcp"},
            "github": {"url": "http://10.0.0.5:4001/mcp"},
        }
    }
    assert "settings written to" in capsys.readouterr().out


def test_environment_wins_over_env_file(clean_env, monkeypatch):
    (clean_env / ".env").write_text("MCP_PUBLIC_HOST=from-file\n")
    monkeypatch.setenv("MCP_PUBLIC_HOST", "from-shell")

    assert hub_main.main(["--env-file", str(clean_env / ".env"), "--generate", "--only", "git"]) == 0

    document = json.loads((clean_env / "claude-settings.json").read_text())
    assert document["mcpServers"]["git"]["url"] == "http://from-shell:3170/mcp"


def test_duplicate_names_fail_before_launching(clean_env):
    registry = clean_env / "servers.yaml"
    registry.write_text(
        "servers:\n"
        "  - {name: dup, command: 'sleep', args: ['999']}\n"
        "  - {name: dup, command: 'true'}\n"
    )

    assert hub_main.main(["--registry", str(registry)]) == 1
    assert not (clean_env / "claude-settings.json").exists()


def test_invalid_setting_exits_nonzero(clean_env, monkeypatch):
    monkeypatch.setenv("MCP_BASE_PORT", "lots")

    assert hub_main.main(["--generate"]) == 1


def test_run_with_only_failures_still_writes_settings(clean_env, monkeypatch, capsys):
    registry = clean_env / "servers.yaml"
    registry.write_text(
        "servers:\n"
        "  - {name: one, command: 'true'}\n"
        "  - {name: two, command: 'true'}\n"
    )
    monkeypatch.setenv("MCP_ADAPTER_BIN", str(clean_env / "no-such-adapter"))
    monkeypatch.setenv("MCP_STARTUP_TIMEOUT_MS", "200")

    assert hub_main.main(["--registry", str(registry)]) == 0

    out = capsys.readouterr().out
    assert "[XX] one" in out
    assert "[XX] two" in out
    assert "Started: 0/2" in out
    assert "Failed:  2" in out
    assert json.loads((clean_env / "claude-settings.json").read_text()) == {"mcpServers": {}}


def test_unknown_names_are_not_an_error(clean_env):
    assert hub_main.main(["--generate", "--only", "not-a-server"]) == 0

    assert json.loads((clean_env / "claude-settings.json").read_text()) == {"mcpServers": {}}


def test_log_file(clean_env, monkeypatch):
    log_file = clean_env / "logs" / "hub.log"
    monkeypatch.setenv("MCP_LOG_FILE", str(log_file))

    assert hub_main.main(["--generate", "--only", "git"]) == 0

    assert "Wrote 1 endpoint(s)" in log_file.read_text()


def test_only_without_names_launches_nothing(clean_env, monkeypatch, capsys):
    received = []
    monkeypatch.setattr(hub_main, "install_signal_handlers", received.append)

    assert hub_main.main(["--only", ","]) == 0

    assert "Started: 0/0" in capsys.readouterr().out
    assert json.loads((clean_env / "claude-settings.json").read_text()) == {"mcpServers": {}}
    assert len(received) == 1
    assert received[0].is_set() is False
