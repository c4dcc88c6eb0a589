"""Threadlingo: conversational translation with per-thread history.

A small FastAPI service that translates free text through a single
language-model call, keeps a bounded newest-first history of past
translations for each conversation thread, and runs post-hoc quality
checks against every handled request.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
``server.py`` and ``health.py`` import ``__version__`` from here.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# When the package is installed (``pip install -e .``), importlib.metadata
# resolves the version from the distribution metadata that pip wrote.  If
# the package is imported without being installed we fall back to a
# "-dev" version so the application can still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("threadlingo")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
