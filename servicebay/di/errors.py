"""
DI-specific error types with rich diagnostics.
"""

from typing import List, Optional

from ..errors import InjectionError


class DIError(InjectionError):
    """Base exception for service locator errors."""
    pass


class ProviderNotFoundError(DIError):
    """No live instance registered for requested token."""

    def __init__(
        self,
        token: str,
        candidates: Optional[List[str]] = None,
        requested_by: Optional[str] = None,
    ):
        self.token = token
        self.candidates = candidates or []
        self.requested_by = requested_by

        msg = f"No service registered for token={token}"

        if requested_by:
            msg += f"\nRequested by: {requested_by}"

        if self.candidates:
            msg += "\n\nCandidates found:"
            for candidate in self.candidates:
                msg += f"\n  - {candidate}"

        msg += "\n\nSuggested fixes:"
        msg += f"\n  - Mark {token} with @singleton or @service and add its package to scan"
        msg += "\n  - Declare the dependency as Inject(optional=True)"

        super().__init__(msg)
