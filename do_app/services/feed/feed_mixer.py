"""
Hybrid feed composition.

Combines the "following" and "for you" sources into one ordered list.
The share of following posts grows with the size of the user's social
graph.
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


# Following count upper bounds (exclusive) -> share of following posts
FOLLOWING_RATIO_TABLE = (
    (1, 0.0),
    (7, 0.3),
    (21, 0.5),
)
MAX_FOLLOWING_RATIO = 0.7


def feed_ratio_for_following_count(following_count: int) -> float:
    """
    Share of following posts for a user who follows this many accounts.

    Args:
        following_count: Number of accounts the user follows

    Returns:
        0.0 for nobody, 0.3 up to and including 6, 0.5 below 21,
        otherwise 0.7
    """
    for upper_bound, ratio in FOLLOWING_RATIO_TABLE:
        if following_count < upper_bound:
            return ratio
    return MAX_FOLLOWING_RATIO


def mix_feeds(following: Sequence[T], for_you: Sequence[T], ratio: float) -> List[T]:
    """
    Interleave two feeds in a fixed repeating pattern.

    Each round takes one following post, a second following post when
    ratio is above 0.5, then one for-you post. Rounds repeat until both
    inputs are used up, so every input post appears exactly once and the
    relative order inside each source is kept. No de-duplication happens
    here; a post present in both sources appears twice.

    Args:
        following: Posts from followed accounts
        for_you: Recommended posts
        ratio: Share of following posts (see feed_ratio_for_following_count)

    Returns:
        Mixed list
    """
    mixed: List[T] = []
    following_take = 2 if ratio > 0.5 else 1
    f_index = 0
    y_index = 0

    while f_index < len(following) or y_index < len(for_you):
        for _ in range(following_take):
            if f_index < len(following):
                mixed.append(following[f_index])
                f_index += 1

        if y_index < len(for_you):
            mixed.append(for_you[y_index])
            y_index += 1

    return mixed
