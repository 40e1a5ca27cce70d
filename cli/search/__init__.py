from __future__ import annotations

from .app import NO_RESULTS, SearchCLIOptions, load_points, main, run_search

__all__ = [
    "NO_RESULTS",
    "SearchCLIOptions",
    "load_points",
    "main",
    "run_search",
]
