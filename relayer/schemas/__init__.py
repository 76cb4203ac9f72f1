from .activity import (
    ACTIVITY_APP,
    ActivityEvent,
    ActivityKind,
    ActivityStatus,
    ActivityTx,
    AiMode,
    AiVerdict,
    AppendResult,
    EventsPage,
    RemoteEventsResult,
    RemoteResult,
    TokenSymbol,
    UpdateResult,
    ValidationResult,
)

__all__ = [
    "ACTIVITY_APP",
    "ActivityEvent",
    "ActivityKind",
    "ActivityStatus",
    "ActivityTx",
    "AiMode",
    "AiVerdict",
    "AppendResult",
    "EventsPage",
    "RemoteEventsResult",
    "RemoteResult",
    "TokenSymbol",
    "UpdateResult",
    "ValidationResult",
]
