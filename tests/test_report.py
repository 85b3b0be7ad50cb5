"""
Tests for console reporting.
"""

from mcphub.supervisor import report
from mcphub.supervisor.outcomes import Failed, OutcomeLog, Running, plan_launches

from tests.helpers import make_config, server


def test_batch_lines(capsys):
    plans = plan_launches([server("github", "npx"), server("blender", "uvx")], 3170)
    outcomes = OutcomeLog()
    outcomes.record(Failed(name="blender", error="exit code 1: ModuleNotFoundError"))
    outcomes.record(Running(name="github", port=3170, pid=42))

    report.print_batch(plans, outcomes)

    assert capsys.readouterr().out.splitlines() == [
        "  [OK] github                 -> port 3170",
        "  [XX] blender                -> exit code 1: ModuleNotFoundError",
    ]


def test_summary_shows_failures_only_when_present(capsys):
    outcomes = OutcomeLog()
    outcomes.record(Running(name="a", port=4000, pid=1))

    report.print_summary(outcomes, 1)
    out = capsys.readouterr().out
    assert "Started: 1/1" in out
    assert "Failed:" not in out

    outcomes.record(Failed(name="b", error="exit code 0"))
    report.print_summary(outcomes, 2)
    out = capsys.readouterr().out
    assert "Started: 1/2" in out
    assert "Failed:  1" in out


def test_banner_port_range(tmp_path, capsys):
    plans = plan_launches([server(f"s{i}", "true") for i in range(3)], 3170)

    report.print_banner(plans, make_config(tmp_path))

    assert "Launching 3 servers on ports 3170-3172" in capsys.readouterr().out


def test_banner_without_servers(tmp_path, capsys):
    report.print_banner([], make_config(tmp_path))

    assert "No servers selected." in capsys.readouterr().out


def test_server_list(capsys):
    report.print_server_list([server("filesystem", "npx", "-y", "@modelcontextprotocol/server-filesystem", "/data")])

    out = capsys.readouterr().out
    assert "Available MCP servers (1):" in out
    assert "   1. filesystem             npx -y @modelcontextprotocol/server-filesystem /data" in out
