# blitz_installer/components/launcher/menu_launcher.py
# -*- coding: utf-8 -*-
"""
Hands the terminal over to the panel menu. On success the installer
process is replaced and this module never returns.
"""

import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from blitz_installer.common.command_utils import get_symbols, log_step
from blitz_installer.common.file_utils import make_executable
from blitz_installer.common.logging_config import LOGGER_NAME
from blitz_installer.config_models import AppSettings


def launch_menu(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    LAUNCH stage.

    Raises:
        FileNotFoundError: The entry point does not exist.
        OSError: The entry point could not be executed.
    """
    logger_to_use = current_logger or logging.getLogger(__name__)
    symbols = get_symbols(app_settings)
    entry_point = app_settings.entry_point_path

    os.chdir(app_settings.install_root)
    make_executable(entry_point)

    delay = app_settings.launch_delay_seconds
    if delay:
        log_step(
            f"Starting in {delay:g} seconds...",
            "info",
            logger_to_use,
            app_settings,
        )
        time.sleep(delay)
    log_step(
        f"{symbols['info']} Launching Blitz Menu...",
        "info",
        logger_to_use,
        app_settings,
    )
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()
    os.execv(str(entry_point), [str(entry_point)])
