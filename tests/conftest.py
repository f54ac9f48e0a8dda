# tests/conftest.py
# -*- coding: utf-8 -*-
import io
import logging
import os
import struct
import zipfile
from unittest.mock import MagicMock

import pytest

from blitz_installer.config_models import AppSettings, MongoDBSettings, ShellSettings

UBUNTU_2204_OS_RELEASE = """\
PRETTY_NAME="Ubuntu 22.04.4 LTS"
NAME="Ubuntu"
VERSION_ID="22.04"
VERSION="22.04.4 LTS (Jammy Jellyfish)"
VERSION_CODENAME=jammy
ID=ubuntu
ID_LIKE=debian
UBUNTU_CODENAME=jammy
"""

CPUINFO_WITH_AVX = """\
processor\t: 0
vendor_id\t: GenuineIntel
flags\t\t: fpu vme de pse sse sse2 avx avx2 aes
"""

@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep BLITZ_* variables of the test runner out of the settings."""
    for name in list(os.environ):
        if name.startswith("BLITZ_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def host_files(tmp_path):
    """os-release and cpuinfo files describing a supported host."""
    os_release = tmp_path / "os-release"
    os_release.write_text(UBUNTU_2204_OS_RELEASE)
    cpuinfo = tmp_path / "cpuinfo"
    cpuinfo.write_text(CPUINFO_WITH_AVX)
    return os_release, cpuinfo


@pytest.fixture
def app_settings(tmp_path, host_files):
    """AppSettings with every host path redirected into tmp_path."""
    os_release, cpuinfo = host_files
    return AppSettings(
        install_root=tmp_path / "hysteria",
        os_release_path=os_release,
        cpuinfo_path=cpuinfo,
        lock_file=tmp_path / "run" / "blitz-installer.lock",
        log_files_to_truncate=[tmp_path / "btmp", tmp_path / "auth.log"],
        launch_delay_seconds=0,
        mongodb=MongoDBSettings(
            keyring_path=tmp_path / "keyrings" / "mongodb-server-8.0.gpg",
            repo_file=tmp_path / "sources.list.d" / "mongodb-org-8.0.list",
        ),
        shell=ShellSettings(profile_path=tmp_path / ".bashrc"),
    )


@pytest.fixture
def corrupt_zip_bytes():
    """A deflated zip archive whose compressed member data is damaged."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("menu.sh", "".join(f"echo line {i}\n" for i in range(2000)))
    data = bytearray(buffer.getvalue())
    name_length, extra_length = struct.unpack("<HH", data[26:30])
    start = 30 + name_length + extra_length
    for offset in range(start + 5, start + 40):
        data[offset] ^= 0xFF
    return bytes(data)
