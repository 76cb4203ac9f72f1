"""
Pydantic schemas for activity events and backend results.

Events themselves travel as plain JSON objects (validated by
``relayer.services.validation``); these models describe the tagged results
returned by the store, the Linera client and the backend.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


ACTIVITY_APP = "arc-stable-toolbox"


class ActivityKind(str, Enum):
    """Kinds of activity an actor can perform"""
    BRIDGE = "bridge"
    SWAP = "swap"
    DEPLOY = "deploy"
    CONTRACT_CALL = "contractCall"


class ActivityStatus(str, Enum):
    """Lifecycle statuses of an activity event"""
    STARTED = "started"
    APPROVED = "approved"
    SUBMITTED = "submitted"
    ATTESTED = "attested"
    COMPLETED = "completed"
    FAILED = "failed"


class TokenSymbol(str, Enum):
    USDC = "USDC"
    EURC = "EURC"


class AiMode(str, Enum):
    SUGGEST = "suggest"
    APPROVE = "approve"


class AiVerdict(str, Enum):
    APPROVE = "approve"
    DENY = "deny"
    SUGGEST = "suggest"


ActivityEvent = Dict[str, Any]
ActivityTx = Dict[str, str]


class ValidationResult(BaseModel):
    """Outcome of a schema check: ok, or the list of violated field paths"""
    ok: bool
    errors: List[str] = Field(default_factory=list)


class AppendResult(BaseModel):
    ok: bool
    error: Optional[str] = None


class UpdateResult(BaseModel):
    ok: bool
    event: Optional[ActivityEvent] = None
    error: Optional[str] = None


class EventsPage(BaseModel):
    """One page of events plus the cursor for the next page (None when exhausted)"""
    items: List[ActivityEvent] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")

    model_config = ConfigDict(populate_by_name=True)


class RemoteResult(BaseModel):
    """Outcome of a Linera mutation"""
    ok: bool
    error: Optional[str] = None


class RemoteEventsResult(BaseModel):
    """Outcome of a Linera events query"""
    ok: bool
    items: List[ActivityEvent] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
