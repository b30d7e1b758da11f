from .redirect import (
    RedirectRecord,
    RedirectCreate,
    RedirectUpdate,
    IssueResponse,
    MessageResponse,
)

__all__ = [
    "RedirectRecord",
    "RedirectCreate",
    "RedirectUpdate",
    "IssueResponse",
    "MessageResponse",
]
