#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Pickle persistence for trained artifacts (models, rank tables, score
densities).

Artifacts are written to a temporary file beside the destination and moved
into place with os.replace, so an interrupted save never leaves a truncated
file where a previous good artifact was.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import logging
import os
import pickle
import tempfile
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


def save_pickle(obj: Any, path: Union[str, Path]) -> Path:
    """
    Atomically pickle obj to path.

    Args:
        obj: Plain Python containers to persist
        path: Destination; parent directories are created

    Returns:
        Destination path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the destination so the rename stays on one filesystem
    with tempfile.NamedTemporaryFile(mode='wb', dir=path.parent, prefix=f".{path.name}.",
                                     suffix='.tmp', delete=False) as f:
        tmp_path = Path(f.name)
        try:
            pickle.dump(obj, f)
            f.flush()
            os.fsync(f.fileno())
        except BaseException:
            f.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.debug(f"Wrote {path}")
    return path


# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
