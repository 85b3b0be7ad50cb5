import os
import sys
import logging
import argparse
import setproctitle
from pathlib import Path
from dataclasses import replace
from typing import List, Optional

from mcphub import settings as default_settings
from mcphub.config import HubConfig, load_env_file
from mcphub.errors import HubError
from mcphub.log import setup_logging
from mcphub.registry import load_registry
from mcphub.selector import parse_name_list, select_servers
from mcphub.supervisor import ProcessManager, report
from mcphub.supervisor.settings_file import generate_settings
from mcphub.supervisor.shutdown import install_signal_handlers

log = logging.getLogger("mcphub")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mcphub",
        description="Launch stdio MCP servers behind supergateway, one HTTP port each.",
    )
    parser.add_argument("--list", action="store_true", help="List all available servers and exit.")
    parser.add_argument("--generate", action="store_true", help="Write the settings file for the selected servers without launching anything.")
    parser.add_argument("--only", metavar="NAMES", help="Comma-separated names to launch; all others are skipped.")
    parser.add_argument("--exclude", metavar="NAMES", help="Comma-separated names to leave out.")
    parser.add_argument("--env-file", metavar="PATH", type=Path, help="KEY=VALUE file to load (default: ./.env).")
    parser.add_argument("--registry", metavar="PATH", type=Path, help="YAML file replacing the built-in server table.")
    parser.add_argument("--output", metavar="PATH", type=Path, help="Where to write the settings file.")
    parser.add_argument("--verbose", action="store_true", help="Show DEBUG logs, including adapter output.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> HubConfig:
    """Merges the .env file into a copy of the environment and builds the run configuration."""
    environ = dict(os.environ)
    load_env_file(args.env_file or Path.cwd() / default_settings.ENV_FILE_NAME, environ)
    config = HubConfig.from_environ(environ)
    if args.output:
        config = replace(config, settings_path=args.output)
    if args.registry:
        config = replace(config, registry_path=args.registry)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    The main entry point for the hub.

    :param argv: Command-line arguments, without the program name.
    :return: The process exit code.
    """
    args = parse_args(argv)
    console_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(console_level)

    try:
        config = build_config(args)
        if config.log_file:
            setup_logging(console_level, config.log_file)
        log.debug(f"Configuration: {config.describe()}")

        registry = load_registry(config.environ, config.registry_path)

        if args.list:
            report.print_server_list(registry)
            return 0

        selected = select_servers(registry, parse_name_list(args.only), parse_name_list(args.exclude))

        if args.generate:
            report.print_settings_written(generate_settings(config, selected=selected))
            return 0

        manager = ProcessManager(config)
        install_signal_handlers(manager.shutdown_signal_received)
        manager.run(selected)
        manager.supervision_loop()
        return 0

    except HubError as e:
        log.critical(f"Configuration error: {e}")
        return 1
    except Exception as e:
        log.critical(f"Fatal error: {e}", exc_info=True)
        return 1


def run() -> None:
    """Console script entry point."""
    setproctitle.setproctitle(default_settings.PROCESS_TITLE)
    sys.exit(main())


if __name__ == "__main__":
    run()
