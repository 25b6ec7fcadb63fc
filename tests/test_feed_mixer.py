"""Unit tests for the hybrid feed ratio table and interleaving."""

import pytest

from do_app.services.feed.feed_mixer import feed_ratio_for_following_count, mix_feeds


# ─────────────────────────────────────────────────────────────────
# feed_ratio_for_following_count
# ─────────────────────────────────────────────────────────────────


class TestFeedRatio:
    @pytest.mark.parametrize(
        "following_count, expected",
        [
            (0, 0.0),
            (1, 0.3),
            (5, 0.3),
            (6, 0.3),
            (7, 0.5),
            (20, 0.5),
            (21, 0.7),
            (500, 0.7),
        ],
    )
    def test_ratio_table(self, following_count, expected):
        assert feed_ratio_for_following_count(following_count) == expected


# ─────────────────────────────────────────────────────────────────
# mix_feeds
# ─────────────────────────────────────────────────────────────────


class TestMixFeeds:
    def test_one_following_per_round_at_low_ratio(self):
        mixed = mix_feeds(["f1", "f2", "f3"], ["y1", "y2", "y3"], 0.3)

        assert mixed == ["f1", "y1", "f2", "y2", "f3", "y3"]

    def test_ratio_of_exactly_half_takes_one_following(self):
        mixed = mix_feeds(["f1", "f2"], ["y1", "y2"], 0.5)

        assert mixed == ["f1", "y1", "f2", "y2"]

    def test_two_following_per_round_above_half(self):
        mixed = mix_feeds(["f1", "f2", "f3", "f4"], ["y1", "y2"], 0.7)

        assert mixed == ["f1", "f2", "y1", "f3", "f4", "y2"]

    def test_empty_following_returns_for_you_in_order(self):
        assert mix_feeds([], ["y1", "y2", "y3"], 0.5) == ["y1", "y2", "y3"]

    def test_empty_for_you_returns_following_in_order(self):
        assert mix_feeds(["f1", "f2", "f3"], [], 0.7) == ["f1", "f2", "f3"]

    def test_both_empty(self):
        assert mix_feeds([], [], 0.7) == []

    def test_longer_source_is_drained_after_the_other_runs_out(self):
        mixed = mix_feeds(["f1"], ["y1", "y2", "y3"], 0.7)

        assert mixed == ["f1", "y1", "y2", "y3"]

    def test_every_input_appears_once_and_order_is_kept(self):
        following = [f"f{i}" for i in range(9)]
        for_you = [f"y{i}" for i in range(4)]

        mixed = mix_feeds(following, for_you, 0.7)

        assert len(mixed) == len(following) + len(for_you)
        assert [p for p in mixed if p.startswith("f")] == following
        assert [p for p in mixed if p.startswith("y")] == for_you

    def test_shared_post_is_not_deduplicated(self):
        mixed = mix_feeds(["same"], ["same"], 0.3)

        assert mixed == ["same", "same"]
