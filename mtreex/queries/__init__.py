from .range import bruteforce_range, range_search, range_search_sorted

__all__ = ["bruteforce_range", "range_search", "range_search_sorted"]
