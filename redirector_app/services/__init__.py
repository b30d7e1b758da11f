"""
Service layer: issuing links, resolving them, and administering records.
"""

from .issuance_service import IssuanceService, IssuedRedirect
from .resolution_service import ResolutionService, Outcome, OutcomeKind
from .admin_service import AdminService

__all__ = [
    "IssuanceService",
    "IssuedRedirect",
    "ResolutionService",
    "Outcome",
    "OutcomeKind",
    "AdminService",
]
