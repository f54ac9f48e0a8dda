# blitz_installer/components/shell/alias_installer.py
# -*- coding: utf-8 -*-
"""
Adds the panel shortcut alias to the operator's shell profile.
"""

import logging
from typing import Any, Dict, Optional

from blitz_installer.common.command_utils import get_symbols, log_step
from blitz_installer.common.file_utils import append_line_if_absent
from blitz_installer.config_models import AppSettings


def build_alias_line(app_settings: AppSettings) -> str:
    """The alias re-activates the venv and starts the menu."""
    activate = app_settings.venv_path / "bin" / "activate"
    return (
        f"alias {app_settings.shell.alias_name}="
        f"'source {activate} && {app_settings.entry_point_path}'"
    )


def ensure_alias(
    app_settings: AppSettings,
    context: Dict[str, Any],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    ALIAS stage. Appends the alias unless the profile already mentions the
    alias name (or, in "exact" match mode, already holds the exact line).

    Returns:
        True if the profile was changed.
    """
    logger_to_use = current_logger or logging.getLogger(__name__)
    symbols = get_symbols(app_settings)
    shell = app_settings.shell
    alias_line = build_alias_line(app_settings)
    needle = shell.alias_name if shell.match_mode == "substring" else alias_line

    if not append_line_if_absent(shell.profile_path, alias_line, needle, shell.match_mode):
        log_step(
            f"Alias '{shell.alias_name}' already present in {shell.profile_path}.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False
    log_step(
        f"{symbols['success']} Alias '{shell.alias_name}' added.",
        "success",
        logger_to_use,
        app_settings,
    )
    return True
