"""
Do client settings.

Extends the base settings with the backend endpoints each feature
service talks to. Every Lambda Function URL can be overridden from the
environment or the .env file.
"""

from functools import lru_cache
from typing import Optional

from do_common.config import BaseAppSettings

_LAMBDA = "lambda-url.us-east-1.on.aws"


class Settings(BaseAppSettings):
    """Do-specific settings."""

    # ==========================================================================
    # Feed
    # ==========================================================================
    FEED_FOR_YOU_URL: str = f"https://sv2ufd4we7nq6gx3wsbaz6upde0sjeay.{_LAMBDA}/"
    FEED_FOLLOWING_URL: str = f"https://h2dyvhbkpdk35nm7py4i5r4v5a0pjxys.{_LAMBDA}/"
    FEED_USER_POSTS_URL: str = f"https://wlgisqyvbaz7qysm36mnbpdje40bnrmk.{_LAMBDA}/"
    FEED_DEEP_LINK_URL: str = f"https://bravfrj7zpd7txwopgwggzmbu40xnbqw.{_LAMBDA}/"
    FEED_DELETE_POST_URL: str = f"https://tjilaukuoklivjpydwedxerir40tcjdq.{_LAMBDA}/"
    FEED_HIDE_POST_URL: str = f"https://molc6s6clluocc4zwgawot2y3i0fsxaw.{_LAMBDA}/"
    FEED_ARCHIVE_POST_URL: str = f"https://si3whdyhtdlnifsz3hemcijsge0xgtoy.{_LAMBDA}/"
    FEED_REPORT_POST_URL: str = f"https://eubskipl7qy3euw5eshc5rac4m0hmxee.{_LAMBDA}/"
    SHARE_LINK_FALLBACK_BASE: str = "https://itsdoapp.com/post"

    # Interactions
    INTERACTIONS_BATCH_GET_URL: str = f"https://vqklyqsiejg3tyihn52wsc7avi0zwkkf.{_LAMBDA}/"
    INTERACTIONS_CREATE_URL: str = f"https://mjvibsi42uekzu2yf3god3j2n40hmcef.{_LAMBDA}/"
    INTERACTIONS_DELETE_URL: str = f"https://qunibjtohdrirrf3wdx4cjjj7i0uaadt.{_LAMBDA}/"
    INTERACTION_TIMEOUT_SECONDS: float = 15.0

    # Profiles / follow graph
    PROFILE_GET_URL: str = f"https://ggvxvxhkvyq4eezg7zt2rvssga0hmbza.{_LAMBDA}/"
    PROFILE_FOLLOWERS_URL: str = f"https://vfavih6e5ktwzhegwvyhid6aci0frbfo.{_LAMBDA}/"
    PROFILE_FOLLOWING_URL: str = f"https://ummss73ayfra4k3sixwot3amlq0rymlw.{_LAMBDA}/"
    PROFILE_FOLLOW_STATUS_URL: str = f"https://obxgks3zj5p2stzkenr4emxufq0cpjea.{_LAMBDA}/"
    PROFILE_FOLLOW_URL: str = f"https://wfsqq4ukr3id2gb7dre6vkzdpa0kqubt.{_LAMBDA}/"
    PROFILE_UNFOLLOW_URL: str = f"https://5ym5qssgjmcffolye5ikzbgc3u0jdnkm.{_LAMBDA}/"
    FOLLOW_GRAPH_CACHE_HOURS: int = 1

    # Feed cache
    FEED_CACHE_EXPIRY_HOURS: int = 24
    FEED_CACHE_MEMORY_LIMIT: int = 50
    FEED_CACHE_DISK_LIMIT: int = 200

    # ==========================================================================
    # Workouts
    # ==========================================================================
    WORKOUT_GET_MOVEMENTS_URL: str = f"https://fliz2ldet2vtodw56nhazyssky0sgtwp.{_LAMBDA}/"
    WORKOUT_GET_SESSIONS_URL: str = f"https://g5mvu7ybyfaysp444zrcanoiry0pihgf.{_LAMBDA}/"
    WORKOUT_GET_PLANS_URL: str = f"https://ijqijgq5567crspfqihkrg27fu0phmhw.{_LAMBDA}/"
    WORKOUT_CREATE_MOVEMENT_URL: str = f"https://chthsdswaavi5epk55y23b7r2u0igvcb.{_LAMBDA}/"
    WORKOUT_CREATE_SESSION_URL: str = f"https://hkwhj5ke2iztyrbogphqgmjw6y0dutfs.{_LAMBDA}/"
    WORKOUT_CREATE_PLAN_URL: str = f"https://suvvdoloo4s36hneispcvnsbym0soyle.{_LAMBDA}/"
    WORKOUT_CACHE_TTL_SECONDS: int = 300
    # Tracked workouts stay local-only unless a save Lambda is configured
    WORKOUT_TRACKING_SAVE_URL: Optional[str] = None

    # ==========================================================================
    # Genie
    # ==========================================================================
    GENIE_API_BASE_URL: str = "https://nuexjddrx7.execute-api.us-east-1.amazonaws.com"
    GENIE_MEDIA_TIMEOUT_SECONDS: float = 120.0
    GENIE_VIDEO_TIMEOUT_SECONDS: float = 180.0
    TOKEN_BALANCE_TIMEOUT_SECONDS: float = 15.0
    TOKEN_BALANCE_CACHE_TTL_SECONDS: int = 300
    MEDITATION_LIBRARY_URL: str = f"https://o3znju52m3kvgpok3ao36yzf6y0tsvhw.{_LAMBDA}/"

    # Conversation store
    CONVERSATION_LIST_URL: str = f"https://sdofux4kntgotbl2jmwxkcpfn40lojst.{_LAMBDA}/"
    CONVERSATION_CREATE_URL: str = f"https://5djzquyjlhqeim7wnahmlcmsfi0jzyss.{_LAMBDA}/"
    CONVERSATION_GET_URL: str = f"https://ckig36orcffsl46os4oq5nsa6m0lgtbp.{_LAMBDA}/"
    CONVERSATION_DELETE_URL: str = f"https://oduhjur364zu6hzrrrygmvpnru0llvur.{_LAMBDA}/"
    CONVERSATION_MESSAGES_URL: str = f"https://mifvmlmgfr5sahatylpfhpyrv40lkidv.{_LAMBDA}/"
    CONVERSATION_APPEND_URL: str = f"https://knijtzmlctgjjxhlmp5iiqxuka0brnuh.{_LAMBDA}/"

    # ==========================================================================
    # Nutrition & media
    # ==========================================================================
    USDA_API_KEY: Optional[str] = None
    USDA_SEARCH_URL: str = "https://api.nal.usda.gov/fdc/v1/foods/search"
    OPEN_FOOD_FACTS_BASE_URL: str = "https://world.openfoodfacts.org"
    GOOGLE_API_KEY: Optional[str] = None
    YOUTUBE_SEARCH_URL: str = "https://www.googleapis.com/youtube/v3/search"
    MEDIA_CACHE_LIMIT: int = 200
    MEDIA_CACHE_MAX_BYTES: int = 100 * 1024 * 1024

    # ==========================================================================
    # Local history caps
    # ==========================================================================
    FOOD_HISTORY_LIMIT: int = 500
    MEDITATION_HISTORY_LIMIT: int = 500
    WORKOUT_HISTORY_LIMIT: int = 200
    RESTAURANT_HISTORY_LIMIT: int = 500
    LEARNING_HISTORY_LIMIT: int = 200


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
