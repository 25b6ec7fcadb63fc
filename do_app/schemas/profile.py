"""
Pydantic models for user profiles and the follow graph.
"""

from typing import Optional, List

from pydantic import BaseModel, Field


class ProfileUser(BaseModel):
    userId: str
    username: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    profilePictureUrl: Optional[str] = None
    privacyToggle: Optional[bool] = None
    bio: Optional[str] = None
    genieSubscriptionTier: Optional[str] = None


class FollowStatus(BaseModel):
    isFollowing: bool = False
    isFollower: bool = False
    isMutual: bool = False
    followId: Optional[str] = None
    accepted: Optional[bool] = None
    pending: Optional[bool] = None


class UserProfile(BaseModel):
    """Profile lookup result with follow counts."""
    user: ProfileUser
    followerCount: int = 0
    followingCount: int = 0
    followStatus: Optional[FollowStatus] = None


class FollowUser(BaseModel):
    """Entry in a followers/following list."""
    userId: str
    username: Optional[str] = None
    name: Optional[str] = None
    profilePictureUrl: Optional[str] = None
    isFollowing: Optional[bool] = None


class UserPage(BaseModel):
    users: List[FollowUser] = Field(default_factory=list)
    nextToken: Optional[str] = None
    hasMore: bool = False
