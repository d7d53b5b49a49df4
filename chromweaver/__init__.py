#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Package initialization and version metadata.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

from .version import __version__

__all__ = ["__version__"]

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
