# blitz_installer/__main__.py
# -*- coding: utf-8 -*-
import sys

from blitz_installer.main_installer import main

sys.exit(main())
