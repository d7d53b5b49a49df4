#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Version information.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

__version__ = "0.1.0"

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
