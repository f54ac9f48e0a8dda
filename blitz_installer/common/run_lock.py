# blitz_installer/common/run_lock.py
# -*- coding: utf-8 -*-
"""
Exclusive run lock so that two provisioning runs never overlap on one host.

"flock" is used rather than "lockf": the lock belongs to the open file
description, is dropped automatically when the process dies, and is not
carried across exec because Python opens files non-inheritable.
"""

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from blitz_installer.errors import RunLockError

_logger = logging.getLogger(__name__)


def try_lock_exclusively(fileno: int) -> bool:
    try:
        fcntl.flock(fileno, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        return False
    return True


@contextmanager
def run_locked(lock_file: Union[str, Path]) -> Iterator[Path]:
    """
    Hold an exclusive lock on lock_file for the duration of the block.

    Raises:
        RunLockError: Another process holds the lock, or the lock file
            cannot be opened.
    """
    file = Path(lock_file)
    try:
        file.parent.mkdir(parents=True, exist_ok=True)
        fd = file.open("a+")
    except OSError as e:
        raise RunLockError(f"Cannot open run lock {file}: {e}") from e
    with fd:
        if not try_lock_exclusively(fd.fileno()):
            raise RunLockError(
                f"Another provisioning run holds {file}. Wait for it to finish."
            )
        _logger.debug("%s: Locked exclusively", file)
        fd.seek(0)
        fd.truncate()
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        try:
            yield file
        finally:
            _logger.debug("%s: Lock is released", file)
