"""Package command‑line entrypoint.

Enables running the service with:

    python -m trendwatch

or, once installed (via the console‑script declared in *pyproject.toml*), simply:

    trendwatch
"""

from __future__ import annotations

import sys

from .main import main


def _run() -> None:  # pragma: no cover – thin wrapper
    """Invoke :pyfunc:`trendwatch.main.main`."""

    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    _run()
