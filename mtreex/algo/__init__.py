"""Leaf split policies."""

from .split import (
    SplitPolicy,
    available_split_policies,
    get_split_policy,
    split_farthest_pair,
    split_first_coordinate,
)

__all__ = [
    "SplitPolicy",
    "available_split_policies",
    "get_split_policy",
    "split_farthest_pair",
    "split_first_coordinate",
]
