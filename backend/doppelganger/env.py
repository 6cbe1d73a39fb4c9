"""Environment loading helpers.

Nothing here runs at import time; entrypoints call ``load_dotenv_if_present``
before settings are read.
"""

from __future__ import annotations

from dotenv import find_dotenv, load_dotenv


def load_dotenv_if_present(filename: str = ".env") -> str | None:
    """Load variables from the nearest ``filename`` and return its path, if any."""

    dotenv_path = find_dotenv(filename=filename, usecwd=True)
    if not dotenv_path:
        return None
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return dotenv_path
