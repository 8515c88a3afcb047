"""Application orchestration package for TrendWatch.

Contains controller-adjacent modules:
- controller: alert dispatch, channel scheduling and feed refresh
- services: content sources (live fetcher and static defaults)
- timers: delayed-callback loop shared by the controllers
"""

__all__ = ["controller", "services", "timers"]
