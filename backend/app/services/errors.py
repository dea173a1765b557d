"""Errors raised by the work service.

The API layer renders each one as ``{"detail": ...}`` with ``status_code``.
Every check that can raise runs before the operation's first write.
"""

from __future__ import annotations

from typing import Any


class WorkError(Exception):
    status_code = 400

    def __init__(self, detail: Any = None) -> None:
        self.detail = detail if detail is not None else self.default_detail()
        super().__init__(str(self.detail))

    def default_detail(self) -> Any:
        return "Request failed"


class ValidationError(WorkError):
    status_code = 422

    def default_detail(self) -> Any:
        return "Validation failed"


class NotFoundError(WorkError):
    status_code = 404

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")


class ForbiddenError(WorkError):
    status_code = 403

    def default_detail(self) -> Any:
        return "Access denied"


class InvalidTransitionError(WorkError):
    status_code = 400

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            {
                "message": f"Invalid status transition from {current} to {requested}",
                "current": current,
                "requested": requested,
            }
        )


class DuplicateMemberError(WorkError):
    status_code = 409

    def default_detail(self) -> Any:
        return "User is already a team member"
