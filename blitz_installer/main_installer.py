# blitz_installer/main_installer.py
# -*- coding: utf-8 -*-
"""
Entry point for the Blitz installer.

'install' (the default) runs the whole provisioning pipeline and ends by
handing the terminal to the panel menu; 'check' runs only the host checks.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from blitz_installer import __version__
from blitz_installer import config as static_config
from blitz_installer.common.command_utils import get_symbols, log_step
from blitz_installer.common.logging_config import LOGGER_NAME, setup_logging
from blitz_installer.common.orchestrator import Orchestrator, PipelineState
from blitz_installer.common.run_lock import run_locked
from blitz_installer.components.launcher.menu_launcher import launch_menu
from blitz_installer.components.mongodb.mongodb_installer import install_mongodb
from blitz_installer.components.preconditions.preconditions_checker import (
    check_preconditions,
)
from blitz_installer.components.prerequisites.prerequisites_installer import (
    free_log_space,
    install_system_packages,
)
from blitz_installer.components.python_env.python_env_builder import (
    build_python_env,
)
from blitz_installer.components.release.release_fetcher import fetch_release
from blitz_installer.components.shell.alias_installer import ensure_alias
from blitz_installer.config_loader import load_app_settings
from blitz_installer.config_models import AppSettings
from blitz_installer.errors import RunLockError

COMMAND_INSTALL = "install"
COMMAND_CHECK = "check"


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="blitz-installer",
        description=f"Provision this host for the {static_config.PRODUCT_NAME} panel.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help=f"YAML configuration file (default: {static_config.DEFAULT_CONFIG_FILE} if present)",
    )
    parser.add_argument("--install-root", type=Path, help="Install root directory")
    parser.add_argument("--log-file", type=Path, help="Also write JSON logs to this file")
    parser.add_argument("--lock-file", type=Path, help="Run lock file")
    parser.add_argument(
        "--launch-delay",
        type=float,
        help="Seconds to wait before the menu starts",
    )
    parser.add_argument(
        "--no-launch",
        action="store_true",
        help="Provision everything but do not start the menu",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")
    subparsers.add_parser(
        COMMAND_INSTALL, help="Run the full provisioning pipeline (default)"
    )
    subparsers.add_parser(
        COMMAND_CHECK, help="Only check privilege, OS and CPU compatibility"
    )

    parsed_args = parser.parse_args(args)
    if parsed_args.command is None:
        parsed_args.command = COMMAND_INSTALL
    return parsed_args


def build_orchestrator(
    app_settings: AppSettings,
    logger: logging.Logger,
    command: str = COMMAND_INSTALL,
) -> Orchestrator:
    """Register the stages for a command, in pipeline order."""
    orchestrator = Orchestrator(app_settings, logger)
    orchestrator.add_task(PipelineState.PRECONDITIONS, check_preconditions)
    if command == COMMAND_CHECK:
        return orchestrator

    orchestrator.add_task(PipelineState.LOG_CLEANUP, free_log_space, fatal=False)
    orchestrator.add_task(PipelineState.SYSTEM_DEPS, install_system_packages)
    orchestrator.add_task(PipelineState.DB_ENGINE, install_mongodb)
    orchestrator.add_task(PipelineState.ARTIFACT_FETCH, fetch_release)
    orchestrator.add_task(PipelineState.RUNTIME_ENV, build_python_env)
    orchestrator.add_task(PipelineState.ALIAS, ensure_alias, fatal=False)
    if app_settings.launch:
        orchestrator.add_task(PipelineState.LAUNCH, launch_menu)
    return orchestrator


def run_pipeline(
    app_settings: AppSettings,
    logger: Optional[logging.Logger] = None,
    command: str = COMMAND_INSTALL,
) -> int:
    """
    Run the pipeline for a command under the run lock.

    Returns:
        The process exit code: 0 on success, otherwise the code of the
        failure that halted the run.
    """
    logger_to_use = logger or logging.getLogger(LOGGER_NAME)
    symbols = get_symbols(app_settings)
    try:
        with run_locked(app_settings.lock_file):
            orchestrator = build_orchestrator(app_settings, logger_to_use, command)
            orchestrator.run()
    except RunLockError as e:
        log_step(f"{symbols['error']} {e}", "error", logger_to_use, app_settings)
        return e.exit_code

    if orchestrator.failure is not None:
        return orchestrator.exit_code
    if command == COMMAND_CHECK:
        log_step(
            f"{symbols['success']} This host meets all requirements.",
            "success",
            logger_to_use,
            app_settings,
        )
    else:
        log_step(
            f"{symbols['success']} Provisioning finished. Run '{app_settings.shell.alias_name}' to open the menu.",
            "success",
            logger_to_use,
            app_settings,
        )
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the Blitz installer."""
    parsed_args = parse_args(args)
    app_settings = load_app_settings(parsed_args)
    logger = setup_logging(parsed_args.verbose, app_settings.log_file)

    logger.info(
        f"\n======== {static_config.PRODUCT_NAME} Setup Script v{__version__} ========\n"
    )
    return run_pipeline(app_settings, logger, parsed_args.command)


if __name__ == "__main__":
    sys.exit(main())
