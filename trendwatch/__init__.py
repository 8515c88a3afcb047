"""TrendWatch package bootstrap.

Trend scoring, breaking-news qualification, single-slot alert dispatch and the
channel scheduler that drives them.

Updates: v0.1 - 2026-09-14 - Created package scaffold.
Updates: v0.2 - 2026-10-02 - Exposed the command-line entrypoint.
"""

from .main import main

__all__ = ["main"]
