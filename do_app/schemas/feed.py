"""
Pydantic models for social feed posts and reactions.

Posts arrive from the feed Lambdas with inconsistent shapes: counts may be
missing, attachments come as JSON-encoded strings and the author may or
may not be embedded. The models normalise that on the way in.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)


# =============================================================================
# Reaction types
# =============================================================================

INTERACTION_TYPES = (
    "heart",
    "star",
    "goat",
    "party",
    "clap",
    "exploding",
    "like",
    "comment",
    "share",
)

# Reactions that carry a visible counter on the post
COUNTED_REACTIONS = ("heart", "star", "goat")

_REACTION_ALIASES = {
    "heart": "heart",
    "fullheart_40": "heart",
    "star": "star",
    "fullstar_40": "star",
    "goat": "goat",
    "fullgoat_40": "goat",
    "party": "party",
    "partyfaceemoji": "party",
    "clap": "clap",
    "clappingemoji": "clap",
    "exploding": "exploding",
    "explodingfaceemoji": "exploding",
    "explode": "exploding",
}


def normalize_reaction_type(raw: str) -> str:
    """
    Map UI asset names and legacy values onto a reaction type.

    Args:
        raw: Reaction as sent by the UI ("fullheart_40", "PartyFaceEmoji", ...)

    Returns:
        Canonical reaction type, or the lowercased input when unknown
    """
    lowered = raw.strip().lower()
    return _REACTION_ALIASES.get(lowered, lowered)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp with or without fractional seconds."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# Models
# =============================================================================

class Interaction(BaseModel):
    """A single reaction left on a post."""
    id: str
    postId: str
    userId: str
    interactionType: str
    createdAt: datetime
    username: Optional[str] = None

    @classmethod
    def from_wire(cls, raw: Dict[str, Any], username: Optional[str] = None) -> Optional["Interaction"]:
        """
        Build from a post's embedded interaction record.

        Returns None for reaction types this client does not know.
        """
        reaction = raw.get("reactionType") or raw.get("interactionType")
        if reaction not in INTERACTION_TYPES:
            return None

        return cls(
            id=raw.get("interactionId") or raw.get("id") or "",
            postId=raw.get("postId", ""),
            userId=raw.get("userId", ""),
            interactionType=reaction,
            createdAt=parse_timestamp(raw.get("createdAt")) or datetime.now(timezone.utc),
            username=username,
        )


class PostUser(BaseModel):
    """Author summary embedded in a post."""
    userId: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None
    profilePictureUrl: Optional[str] = None
    followerCount: Optional[int] = None
    followingCount: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _pick_profile_picture(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("profilePictureUrl"):
            data = dict(data)
            for key in ("profilePictureUrlLarge", "profilePictureUrlMedium", "profilePictureUrlThumb"):
                if data.get(key):
                    data["profilePictureUrl"] = data[key]
                    break
        return data


class Post(BaseModel):
    """
    A feed post.

    Posts compare and hash by postId so feeds can be de-duplicated with
    plain set membership.
    """

    postId: str
    userId: Optional[str] = None
    postType: Optional[str] = None
    caption: Optional[str] = None
    visibility: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    mediaUrl: Optional[str] = None
    mediaUrlThumb: Optional[str] = None
    mediaUrlMedium: Optional[str] = None
    mediaUrlLarge: Optional[str] = None
    mediaUrlOriginal: Optional[str] = None

    hearts: int = 0
    stars: int = 0
    goats: int = 0
    commentCount: Optional[int] = None
    interactionCount: Optional[int] = None

    heartFlag: bool = False
    starFlag: bool = False
    goatFlag: bool = False

    workoutId: Optional[str] = None
    workoutType: Optional[str] = None
    activityId: Optional[str] = None
    activityType: Optional[str] = None
    attachment: Optional[Dict[str, Any]] = None

    routeDataUrl: Optional[str] = None
    routeDataS3Key: Optional[str] = None
    routePolyline: Optional[str] = None
    mapPreviewUrl: Optional[str] = None

    createdBy: Optional[PostUser] = None
    interactions: List[Interaction] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        if "postId" not in data and "objectId" in data:
            data["postId"] = data["objectId"]

        user = data.pop("user", None)
        if user and "createdBy" not in data:
            data["createdBy"] = user

        # Wire counts use *Count, local copies already use the short names
        heart_count = data.pop("heartCount", None)
        star_count = data.pop("starCount", None)
        goat_count = data.pop("goatCount", None)
        data.setdefault("hearts", heart_count or 0)
        data.setdefault("stars", star_count or 0)
        data.setdefault("goats", goat_count or 0)

        snapshot = data.pop("activitySnapshot", None) or data.pop("workoutSnapshot", None)
        data.pop("workoutSnapshot", None)
        if snapshot and not data.get("attachment"):
            attachment = _parse_snapshot(snapshot)
            if attachment is not None:
                data["attachment"] = attachment
                for key in ("routeDataUrl", "routeDataS3Key", "routePolyline", "mapPreviewUrl"):
                    if not data.get(key) and isinstance(attachment.get(key), str):
                        data[key] = attachment[key]

        raw_interactions = data.get("interactions")
        if isinstance(raw_interactions, list):
            author = data.get("createdBy")
            username = author.get("username") if isinstance(author, dict) else None
            parsed = []
            for item in raw_interactions:
                if isinstance(item, Interaction):
                    parsed.append(item)
                elif isinstance(item, dict) and "interactionType" in item and "id" in item:
                    parsed.append(item)
                elif isinstance(item, dict):
                    interaction = Interaction.from_wire(item, username=username)
                    if interaction is not None:
                        parsed.append(interaction)
            data["interactions"] = parsed

            # Backfill counters the Lambda left empty
            counted = _count_reactions(parsed)
            for field_name, wire in (("hearts", heart_count), ("stars", star_count), ("goats", goat_count)):
                if not wire and data.get(field_name, 0) == 0:
                    data[field_name] = counted[field_name]

        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Post):
            return NotImplemented
        return self.postId == other.postId

    def __hash__(self) -> int:
        return hash(self.postId)

    @property
    def current_reaction(self) -> Optional[str]:
        if self.heartFlag:
            return "heart"
        if self.starFlag:
            return "star"
        if self.goatFlag:
            return "goat"
        return None

    def created_at_datetime(self) -> Optional[datetime]:
        return parse_timestamp(self.createdAt)

    def time_ago_label(self, now: Optional[datetime] = None) -> str:
        """
        Human-readable age of the post.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            "Just now", "5m ago", "3h ago", "2d ago", or a date such as
            "Mar 04, 2025" once the post is a week old
        """
        created = self.created_at_datetime()
        if created is None:
            return "Just now"

        now = now or datetime.now(timezone.utc)
        seconds = int((now - created).total_seconds())

        if seconds >= 7 * 86400:
            return created.strftime("%b %d, %Y")
        if seconds >= 86400:
            return f"{seconds // 86400}d ago"
        if seconds >= 3600:
            return f"{seconds // 3600}h ago"
        if seconds >= 60:
            return f"{seconds // 60}m ago"
        return "Just now"

    def update_reaction(self, reaction_type: Optional[str]) -> None:
        """
        Apply the viewer's reaction locally.

        A post holds at most one reaction from the viewer: setting one
        clears the others, None removes it. Only heart, star and goat have
        counters; counters never go below zero.

        Args:
            reaction_type: New reaction (any alias), or None to remove
        """
        previous = self.current_reaction
        new = normalize_reaction_type(reaction_type) if reaction_type else None

        self.heartFlag = new == "heart"
        self.starFlag = new == "star"
        self.goatFlag = new == "goat"

        if previous and previous != new:
            self._adjust_count(previous, -1)
        if new in COUNTED_REACTIONS and new != previous:
            self._adjust_count(new, 1)

    def recalculate_interaction_counts(self) -> None:
        counted = _count_reactions(self.interactions)
        self.hearts = counted["hearts"]
        self.stars = counted["stars"]
        self.goats = counted["goats"]

    def _adjust_count(self, reaction: str, delta: int) -> None:
        field_name = f"{reaction}s"
        setattr(self, field_name, max(0, getattr(self, field_name) + delta))


class FeedPage(BaseModel):
    """One page of posts from a feed Lambda."""
    posts: List[Post] = Field(default_factory=list)
    lastEvaluatedKey: Optional[str] = None
    count: int = 0


class ReactionRecord(BaseModel):
    """The viewer's reaction on one post, as returned by the batch lookup."""
    interactionId: Optional[str] = None
    reactionType: str
    createdAt: Optional[str] = None


# =============================================================================
# Helpers
# =============================================================================

def _parse_snapshot(snapshot: Any) -> Optional[Dict[str, Any]]:
    if isinstance(snapshot, dict):
        return snapshot
    if not isinstance(snapshot, str):
        return None
    try:
        parsed = json.loads(snapshot)
    except ValueError:
        logger.warning("Ignoring post snapshot that is not valid JSON")
        return None
    return parsed if isinstance(parsed, dict) else None


def _count_reactions(interactions: List[Any]) -> Dict[str, int]:
    counts = {"hearts": 0, "stars": 0, "goats": 0}
    for item in interactions:
        reaction = item.interactionType if isinstance(item, Interaction) else item.get("interactionType")
        if reaction in COUNTED_REACTIONS:
            counts[f"{reaction}s"] += 1
    return counts
