# blitz_installer/config.py
# -*- coding: utf-8 -*-
"""
Static constants and definitions for the Blitz installer.

Mutable runtime configuration (install root, URLs, package lists) is handled
by 'blitz_installer/config_models.py' and 'blitz_installer/config_loader.py'.
The values here are the defaults those models start from.
"""

from pathlib import Path

PRODUCT_NAME: str = "Blitz"

DEFAULT_CONFIG_FILE: Path = Path("/etc/blitz-installer/config.yaml")
DEFAULT_LOCK_FILE: Path = Path("/run/lock/blitz-installer.lock")

SYMBOLS: dict[str, str] = {
    "success": "[✓]",
    "error": "[✗]",
    "warning": "[!]",
    "info": "[i]",
    "step": "[>]",
    "gear": "[*]",
    "package": "[+]",
    "rocket": "[^]",
    "critical": "[✗]",
    "debug": "[.]",
}

INSTALL_ROOT: Path = Path("/etc/hysteria")
OS_RELEASE_PATH: Path = Path("/etc/os-release")
CPUINFO_PATH: Path = Path("/proc/cpuinfo")

# OS identifier -> minimum VERSION_ID
SUPPORTED_OS: dict[str, str] = {
    "ubuntu": "22",
    "debian": "12",
}

REQUIRED_CPU_FEATURES: list[str] = ["avx", "avx2", "avx512"]

NODB_INSTALL_HINT: str = (
    "bash <(curl -sL "
    "https://raw.githubusercontent.com/ReturnFI/Blitz/nodb/install.sh)"
)

SYSTEM_PACKAGES: list[str] = [
    "jq",
    "curl",
    "pwgen",
    "python3",
    "python3-pip",
    "python3-venv",
    "bc",
    "zip",
    "unzip",
    "lsof",
    "gnupg",
    "lsb-release",
]

# Commands the precondition checker itself relies on, with the package
# that provides each one.
HELPER_COMMANDS: dict[str, str] = {
    "lsb_release": "lsb-release",
}

MONGODB_SERIES: str = "8.0"
MONGODB_KEY_URL: str = (
    f"https://www.mongodb.org/static/pgp/server-{MONGODB_SERIES}.asc"
)
MONGODB_KEYRING_PATH: Path = Path(
    f"/usr/share/keyrings/mongodb-server-{MONGODB_SERIES}.gpg"
)
MONGODB_REPO_FILE: Path = Path(
    f"/etc/apt/sources.list.d/mongodb-org-{MONGODB_SERIES}.list"
)
MONGODB_REPO_URL: str = "https://repo.mongodb.org/apt"

# OS identifier -> (repository base, repository component)
MONGODB_REPO_COMPONENTS: dict[str, tuple[str, str]] = {
    "ubuntu": ("ubuntu", "multiverse"),
    "debian": ("debian", "main"),
}

RELEASE_URL_TEMPLATE: str = (
    "https://github.com/ReturnFI/Blitz/releases/latest/download/Blitz-{arch}.zip"
)

ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "aarch64": "arm64",
}

# File name inside the install root -> source URL
GEO_FILES: dict[str, str] = {
    "geoip.dat": "https://github.com/v2fly/geoip/releases/latest/download/geoip.dat",
    "geosite.dat": "https://github.com/v2fly/domain-list-community/releases/latest/download/dlc.dat",
}

EXECUTABLE_PATHS: list[str] = ["core/scripts/auth/user_auth"]

VENV_DIR_NAME: str = "hysteria2_venv"
REQUIREMENTS_FILE: str = "requirements.txt"

ALIAS_NAME: str = "hys2"
ENTRY_POINT: str = "menu.sh"

LOG_FILES_TO_TRUNCATE: list[Path] = [
    Path("/var/log/btmp"),
    Path("/var/log/auth.log"),
]
