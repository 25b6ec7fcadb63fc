"""Unit tests for FeedViewModel (strategy choice, pagination, optimistic reactions)."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from do_app.schemas.feed import FeedPage, Interaction, Post
from do_app.services.feed.feed_view_model import FEED_FOR_YOU, FEED_HYBRID, FeedViewModel
from do_common.utils import ServerException


def _posts(*ids):
    return [Post(postId=post_id) for post_id in ids]


def _page(ids, key=None):
    return FeedPage(posts=_posts(*ids), lastEvaluatedKey=key, count=len(ids))


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def feed_api():
    api = MagicMock()
    api.get_following_feed = AsyncMock()
    api.get_for_you_feed = AsyncMock()
    return api


@pytest.fixture
def interaction_api():
    api = MagicMock()
    api.create_interaction = AsyncMock()
    api.delete_interaction = AsyncMock()
    return api


@pytest.fixture
def follow_graph():
    graph = MagicMock()
    graph.get_following_count = AsyncMock(return_value=3)
    return graph


@pytest.fixture
def feed_cache():
    cache = MagicMock()
    cache.load_posts = MagicMock(return_value=None)
    cache.load_interactions = MagicMock(return_value=None)
    return cache


@pytest.fixture
def view_model(feed_api, interaction_api, follow_graph, feed_cache):
    return FeedViewModel(feed_api, interaction_api, follow_graph, feed_cache)


# ─────────────────────────────────────────────────────────────────
# load_feed
# ─────────────────────────────────────────────────────────────────


class TestLoadFeed:
    @pytest.mark.asyncio
    async def test_no_follows_uses_for_you_only(self, view_model, feed_api, follow_graph):
        follow_graph.get_following_count.return_value = 0
        feed_api.get_for_you_feed.return_value = _page(["y1", "y2"], key="yk")

        await view_model.load_feed("user-1")

        assert view_model.feed_type == FEED_FOR_YOU
        assert [p.postId for p in view_model.posts] == ["y1", "y2"]
        assert view_model.has_more_pages is True
        feed_api.get_following_feed.assert_not_called()
        assert feed_api.get_for_you_feed.call_args.kwargs["limit"] == 20

    @pytest.mark.asyncio
    async def test_hybrid_mixes_both_sources(self, view_model, feed_api):
        feed_api.get_following_feed.return_value = _page(["f1", "f2"], key="fk")
        feed_api.get_for_you_feed.return_value = _page(["y1", "y2"], key="yk")

        await view_model.load_feed("user-1")

        assert view_model.feed_type == FEED_HYBRID
        assert view_model.following_ratio == 0.3
        assert [p.postId for p in view_model.posts] == ["f1", "y1", "f2", "y2"]
        assert feed_api.get_following_feed.call_args.kwargs["limit"] == 10
        assert feed_api.get_for_you_feed.call_args.kwargs["limit"] == 10

    @pytest.mark.asyncio
    async def test_large_graph_takes_two_following_per_round(self, view_model, feed_api, follow_graph):
        follow_graph.get_following_count.return_value = 40
        feed_api.get_following_feed.return_value = _page(["f1", "f2", "f3", "f4"])
        feed_api.get_for_you_feed.return_value = _page(["y1", "y2"])

        await view_model.load_feed("user-1")

        assert [p.postId for p in view_model.posts] == ["f1", "f2", "y1", "f3", "f4", "y2"]

    @pytest.mark.asyncio
    async def test_has_more_when_only_for_you_has_a_key(self, view_model, feed_api):
        feed_api.get_following_feed.return_value = _page(["f1"], key=None)
        feed_api.get_for_you_feed.return_value = _page(["y1"], key="yk")

        await view_model.load_feed("user-1")

        assert view_model.has_more_pages is True

    @pytest.mark.asyncio
    async def test_no_more_pages_when_both_keys_missing(self, view_model, feed_api):
        feed_api.get_following_feed.return_value = _page(["f1"])
        feed_api.get_for_you_feed.return_value = _page(["y1"])

        await view_model.load_feed("user-1")

        assert view_model.has_more_pages is False

    @pytest.mark.asyncio
    async def test_saves_posts_to_cache(self, view_model, feed_api, feed_cache):
        feed_api.get_following_feed.return_value = _page(["f1"])
        feed_api.get_for_you_feed.return_value = _page(["y1"])

        await view_model.load_feed("user-1")

        saved = feed_cache.save_posts.call_args[0][0]
        assert [p.postId for p in saved] == ["f1", "y1"]

    @pytest.mark.asyncio
    async def test_failure_in_either_source_sets_error_and_raises(self, view_model, feed_api):
        feed_api.get_following_feed.side_effect = ServerException(message="boom")
        feed_api.get_for_you_feed.return_value = _page(["y1"], key="yk")

        with pytest.raises(ServerException):
            await view_model.load_feed("user-1")

        assert view_model.error == "Failed to load feed: boom"
        assert view_model.is_loading is False
        assert view_model.posts == []

    @pytest.mark.asyncio
    async def test_picks_up_viewer_reactions_from_posts(self, view_model, feed_api):
        post = Post(postId="f1", interactions=[
            {"interactionId": "i1", "postId": "f1", "userId": "user-1", "reactionType": "star"},
        ])
        feed_api.get_following_feed.return_value = FeedPage(posts=[post])
        feed_api.get_for_you_feed.return_value = _page([])

        await view_model.load_feed("user-1")

        assert view_model.get_interaction("f1") == "star"


# ─────────────────────────────────────────────────────────────────
# load_more
# ─────────────────────────────────────────────────────────────────


class TestLoadMore:
    @pytest.mark.asyncio
    async def test_skips_sources_without_a_token(self, view_model, feed_api):
        feed_api.get_following_feed.return_value = _page(["f1"], key=None)
        feed_api.get_for_you_feed.return_value = _page(["y1"], key="yk")
        await view_model.load_feed("user-1")

        feed_api.get_following_feed.reset_mock()
        feed_api.get_for_you_feed.return_value = _page(["y2"], key=None)
        await view_model.load_more("user-1")

        feed_api.get_following_feed.assert_not_called()
        assert feed_api.get_for_you_feed.call_args.kwargs["last_key"] == "yk"
        assert [p.postId for p in view_model.posts] == ["f1", "y1", "y2"]
        assert view_model.has_more_pages is False

    @pytest.mark.asyncio
    async def test_does_not_append_posts_already_shown(self, view_model, feed_api):
        feed_api.get_following_feed.return_value = _page(["a", "b"], key="fk")
        feed_api.get_for_you_feed.return_value = _page(["c"], key=None)
        await view_model.load_feed("user-1")
        assert [p.postId for p in view_model.posts] == ["a", "c", "b"]

        feed_api.get_following_feed.return_value = _page(["b", "d"], key=None)
        await view_model.load_more("user-1")

        assert [p.postId for p in view_model.posts] == ["a", "c", "b", "d"]

    @pytest.mark.asyncio
    async def test_noop_without_more_pages(self, view_model, feed_api):
        view_model.has_more_pages = False

        await view_model.load_more("user-1")

        feed_api.get_following_feed.assert_not_called()
        feed_api.get_for_you_feed.assert_not_called()

    @pytest.mark.asyncio
    async def test_noop_while_loading(self, view_model, feed_api):
        view_model.is_loading = True

        await view_model.load_more("user-1")

        feed_api.get_for_you_feed.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_page_keeps_tokens(self, view_model, feed_api):
        feed_api.get_following_feed.return_value = _page(["f1"], key="fk")
        feed_api.get_for_you_feed.return_value = _page(["y1"], key="yk")
        await view_model.load_feed("user-1")

        feed_api.get_following_feed.return_value = _page(["f2"], key="fk2")
        feed_api.get_for_you_feed.side_effect = ServerException(message="down")

        with pytest.raises(ServerException):
            await view_model.load_more("user-1")

        assert view_model.error == "Failed to load more posts: down"
        assert view_model.is_loading_more is False
        assert [p.postId for p in view_model.posts] == ["f1", "y1"]

        feed_api.get_for_you_feed.side_effect = None
        feed_api.get_for_you_feed.return_value = _page([], key=None)
        await view_model.load_more("user-1")

        assert feed_api.get_following_feed.call_args.kwargs["last_key"] == "fk"


# ─────────────────────────────────────────────────────────────────
# refresh / should_prefetch
# ─────────────────────────────────────────────────────────────────


class TestRefresh:
    @pytest.mark.asyncio
    async def test_clears_cache_and_reloads_from_first_page(self, view_model, feed_api, feed_cache):
        feed_api.get_following_feed.return_value = _page(["f1"], key="fk")
        feed_api.get_for_you_feed.return_value = _page(["y1"], key="yk")
        await view_model.load_feed("user-1")

        feed_api.get_following_feed.return_value = _page(["f9"])
        feed_api.get_for_you_feed.return_value = _page(["y9"])
        await view_model.refresh("user-1")

        feed_cache.clear_cache.assert_called_once()
        assert feed_api.get_following_feed.call_args.kwargs["last_key"] is None
        assert [p.postId for p in view_model.posts] == ["f9", "y9"]


class TestShouldPrefetch:
    def test_true_within_last_five(self, view_model):
        view_model.posts = _posts(*[f"p{i}" for i in range(10)])

        assert view_model.should_prefetch(view_model.posts[5]) is True
        assert view_model.should_prefetch(view_model.posts[4]) is False

    def test_false_without_more_pages(self, view_model):
        view_model.posts = _posts("p1", "p2")
        view_model.has_more_pages = False

        assert view_model.should_prefetch(view_model.posts[1]) is False

    def test_false_for_unknown_post(self, view_model):
        view_model.posts = _posts("p1")

        assert view_model.should_prefetch(Post(postId="other")) is False


# ─────────────────────────────────────────────────────────────────
# handle_interaction
# ─────────────────────────────────────────────────────────────────


class TestHandleInteraction:
    @pytest.mark.asyncio
    async def test_creates_normalized_reaction(self, view_model, interaction_api, feed_cache):
        view_model.posts = [Post(postId="p1", hearts=1)]

        result = await view_model.handle_interaction("p1", "user-1", "fullheart_40")

        assert result == "heart"
        interaction_api.create_interaction.assert_awaited_once_with("user-1", "p1", "heart")
        assert view_model.posts[0].heartFlag is True
        assert view_model.posts[0].hearts == 2
        feed_cache.save_interactions.assert_called_with({"p1": "heart"})

    @pytest.mark.asyncio
    async def test_same_reaction_again_removes_it(self, view_model, interaction_api):
        view_model.posts = [Post(postId="p1", hearts=1, heartFlag=True)]
        view_model.user_interactions = {"p1": "heart"}

        result = await view_model.handle_interaction("p1", "user-1", "heart")

        assert result is None
        interaction_api.delete_interaction.assert_awaited_once_with("user-1", "p1")
        assert view_model.posts[0].heartFlag is False
        assert view_model.posts[0].hearts == 0
        assert view_model.get_interaction("p1") is None

    @pytest.mark.asyncio
    async def test_switching_reaction_moves_the_count(self, view_model):
        view_model.posts = [Post(postId="p1", hearts=1, heartFlag=True)]
        view_model.user_interactions = {"p1": "heart"}

        await view_model.handle_interaction("p1", "user-1", "star")

        post = view_model.posts[0]
        assert (post.hearts, post.stars) == (0, 1)
        assert post.starFlag is True and post.heartFlag is False

    @pytest.mark.asyncio
    async def test_rolls_back_on_failure(self, view_model, interaction_api):
        view_model.posts = [Post(postId="p1", stars=4)]
        interaction_api.create_interaction.side_effect = ServerException(message="nope")

        with pytest.raises(ServerException):
            await view_model.handle_interaction("p1", "user-1", "star")

        post = view_model.posts[0]
        assert post.starFlag is False
        assert post.stars == 4
        assert view_model.get_interaction("p1") is None


# ─────────────────────────────────────────────────────────────────
# Cached data
# ─────────────────────────────────────────────────────────────────


class TestLoadCachedData:
    def test_restores_posts_and_interactions(self, feed_api, interaction_api, follow_graph, feed_cache):
        feed_cache.load_posts.return_value = _posts("c1", "c2")
        feed_cache.load_interactions.return_value = {"c1": "goat"}

        view_model = FeedViewModel(feed_api, interaction_api, follow_graph, feed_cache)

        assert [p.postId for p in view_model.posts] == ["c1", "c2"]
        assert view_model.get_interaction("c1") == "goat"

    def test_interaction_model_is_kept_on_posts(self):
        post = Post(postId="p1", interactions=[
            {"interactionId": "i1", "postId": "p1", "userId": "u", "reactionType": "clap"},
        ])

        assert isinstance(post.interactions[0], Interaction)
