# blitz_installer/common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: directory replacement, permission fixes,
log truncation and guarded line appends.
"""

import logging
import shutil
import stat
from pathlib import Path
from typing import Iterable, Optional, Union

from blitz_installer.common.command_utils import get_symbols, log_step
from blitz_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def recreate_directory(
    directory_path: Union[str, Path],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Delete a directory tree if it exists and create it again empty.

    Raises:
        OSError: Removal or creation failed.
    """
    logger_to_use = current_logger if current_logger else module_logger
    path = Path(directory_path)
    if path.is_dir() and not path.is_symlink():
        log_step(
            f"Removing existing directory {path}",
            "debug",
            logger_to_use,
            app_settings,
        )
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
    path.mkdir(parents=True)


def make_executable(path: Union[str, Path]) -> None:
    """Add the execute bits (u+x, g+x, o+x) to an existing file."""
    target = Path(path)
    mode = target.stat().st_mode
    target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def truncate_files(
    paths: Iterable[Union[str, Path]],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> int:
    """
    Truncate each existing file to zero bytes.

    Missing files are skipped and errors are logged as warnings, never
    raised.

    Returns:
        The number of files truncated.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    truncated = 0
    for raw_path in paths:
        path = Path(raw_path)
        if not path.is_file():
            log_step(f"{path} not present, skipping.", "debug", logger_to_use, app_settings)
            continue
        try:
            with open(path, "r+b") as f:
                f.truncate(0)
            truncated += 1
        except OSError as e:
            log_step(
                f"{symbols.get('warning', '!')} Could not truncate {path}: {e}",
                "warning",
                logger_to_use,
                app_settings,
            )
    return truncated


def file_contains(
    path: Union[str, Path],
    needle: str,
    match_mode: str = "substring",
) -> bool:
    """
    Check a text file for a needle.

    With match_mode "substring" any occurrence counts; with "exact" a whole
    line (ignoring surrounding whitespace) must equal the needle. A missing
    file contains nothing.
    """
    target = Path(path)
    if not target.is_file():
        return False
    content = target.read_text(encoding="utf-8", errors="replace")
    if match_mode == "exact":
        return any(line.strip() == needle.strip() for line in content.splitlines())
    if match_mode == "substring":
        return needle in content
    raise ValueError(f"Unknown match mode '{match_mode}'")


def append_line_if_absent(
    path: Union[str, Path],
    line: str,
    needle: Optional[str] = None,
    match_mode: str = "substring",
) -> bool:
    """
    Append a line to a text file unless the needle is already present.

    Args:
        path: File to edit; created if missing.
        line: The line to append (a trailing newline is added).
        needle: What to look for. Defaults to the line itself.
        match_mode: "substring" or "exact", see file_contains.

    Returns:
        True if the line was appended, False if it was already present.
    """
    target = Path(path)
    if file_contains(target, needle if needle is not None else line, match_mode):
        return False

    prefix = ""
    if target.is_file():
        existing = target.read_bytes()
        if existing and not existing.endswith(b"\n"):
            prefix = "\n"
    else:
        target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")
    return True
