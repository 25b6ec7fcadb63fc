"""
Pydantic models for the Genie assistant API and conversation store.
"""

from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Query
# =============================================================================

class ConversationMessage(BaseModel):
    """Previous turn sent along with a query."""
    role: str = Field(..., description="user | assistant")
    text: str


class GenieAction(BaseModel):
    """
    Structured directive returned alongside a reply.

    The data payload is untyped; each action handler validates the keys
    it needs.
    """
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


class BalanceWarning(BaseModel):
    level: str
    message: str
    recommendation: Optional[str] = None
    suggestedPack: Optional[str] = None
    suggestedPlan: Optional[str] = None


class ContextUsed(BaseModel):
    runs: Optional[int] = None
    workouts: Optional[int] = None
    hasStats: Optional[bool] = None


class AnalysisDetails(BaseModel):
    performance: str = ""
    patterns: str = ""
    recovery: str = ""


class Recommendation(BaseModel):
    type: str
    action: str


class StructuredAnalysis(BaseModel):
    """Training analysis the backend may embed as JSON in the reply text."""
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    analysis: AnalysisDetails
    recommendations: List[Recommendation] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    dataUsed: Optional[Dict[str, Any]] = None


class GenieQueryResponse(BaseModel):
    """Reply from POST /query."""
    response: str
    tokensUsed: int = 0
    tokensRemaining: int = 0
    tier: int = 0
    handler: Optional[str] = None
    balanceWarning: Optional[BalanceWarning] = None
    contextUsed: Optional[ContextUsed] = None
    thinking: Optional[List[str]] = None
    structuredAnalysis: Optional[StructuredAnalysis] = None
    actions: Optional[List[GenieAction]] = None
    title: Optional[str] = None


# =============================================================================
# Tokens & subscriptions
# =============================================================================

class SubscriptionDetails(BaseModel):
    tier: str
    status: str
    monthlyAllowance: int = 0
    tokensUsedThisMonth: int = 0
    tokensRemainingThisMonth: int = 0
    topUpBalance: int = 0
    currentPeriodStart: Optional[str] = None
    currentPeriodEnd: Optional[str] = None


class TokenPackage(BaseModel):
    tokens: int
    price: int
    name: str


class TokenBalanceResponse(BaseModel):
    """Reply from GET /tokens/balance."""
    balance: int
    usage: Optional[Dict[str, Any]] = None
    packages: Optional[Dict[str, TokenPackage]] = None
    subscription: Optional[SubscriptionDetails] = None


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    package: TokenPackage


# =============================================================================
# Conversation store
# =============================================================================

class Conversation(BaseModel):
    """Stored Genie conversation header."""
    conversationId: str
    ownerId: Optional[str] = None
    title: Optional[str] = None
    lastMessageAt: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class StoredMessage(BaseModel):
    """Stored message inside a conversation."""
    messageId: str
    conversationId: str
    role: str
    text: str
    usageJSON: Optional[str] = None
    model: Optional[str] = None
    createdAt: Optional[str] = None


class SubscriptionTierPrice(BaseModel):
    tier: str
    monthlyPrice: float
    annualPrice: float
    monthlyPriceId: str
    annualPriceId: str
