# blitz_installer/components/__init__.py
# -*- coding: utf-8 -*-
"""
Provisioning stage components, one sub-package per stage.
"""
