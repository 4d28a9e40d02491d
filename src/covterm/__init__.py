from __future__ import annotations

import logging
from importlib.metadata import version

__version__ = version("covterm")

logger = logging.getLogger("covterm")

__all__ = ["__version__", "logger"]
