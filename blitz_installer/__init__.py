# blitz_installer/__init__.py
# -*- coding: utf-8 -*-
"""
Host provisioning installer for the Blitz panel.

Prepares a supported Debian or Ubuntu host (MongoDB, system packages, the
release bundle and its Python virtual environment) and hands control to the
panel menu.
"""

__version__ = "1.0.0"
