"""
Console output for a hub run: the banner, one line per server after each
batch, and the final summary. Printing only; nothing here changes state.
"""
from pathlib import Path
from typing import Sequence

from mcphub.config import HubConfig
from mcphub.registry import ServerDescriptor
from mcphub.supervisor.outcomes import Failed, LaunchPlan, OutcomeLog, Running

RULE = "=" * 46
NAME_WIDTH = 22


def print_banner(plans: Sequence[LaunchPlan], config: HubConfig) -> None:
    print()
    print(RULE)
    print("  MCP Gateway Hub")
    print(RULE)
    if plans:
        print(f"  Launching {len(plans)} servers on ports {plans[0].port}-{plans[-1].port}")
    else:
        print("  No servers selected.")
    print(f"  Adapter: {config.adapter_bin} ({config.output_transport}), public host {config.public_host}")
    print()


def print_batch(batch: Sequence[LaunchPlan], outcomes: OutcomeLog) -> None:
    """Prints one line per server of a finished batch, in the batch's own order."""
    for plan in batch:
        outcome = outcomes.get(plan.name)
        if isinstance(outcome, Running):
            print(f"  [OK] {plan.name:<{NAME_WIDTH}} -> port {outcome.port}")
        elif isinstance(outcome, Failed):
            print(f"  [XX] {plan.name:<{NAME_WIDTH}} -> {outcome.error}")


def print_summary(outcomes: OutcomeLog, total: int) -> None:
    print()
    print(RULE)
    print(f"  Started: {len(outcomes.running)}/{total}")
    if outcomes.failed:
        print(f"  Failed:  {len(outcomes.failed)}")
    print(RULE)
    print()


def print_settings_written(path: Path) -> None:
    print(f"  Claude Code settings written to: {path}")
    print("  Copy the mcpServers block into ~/.claude/settings.json")
    print()


def print_server_list(servers: Sequence[ServerDescriptor]) -> None:
    """Prints the --list table: index, name and invocation of every server."""
    print(f"\nAvailable MCP servers ({len(servers)}):\n")
    for i, server in enumerate(servers, start=1):
        print(f"  {i:>2}. {server.name:<{NAME_WIDTH}} {server.invocation()}")
    print()
