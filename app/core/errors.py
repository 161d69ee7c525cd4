"""Domain errors shared by the service and the operator client.

The service raises these from ``app.services``; ``app.main`` maps them to
HTTP responses, and ``app.client.api`` maps those responses back to the
same types so operator code can branch on them.
"""

import uuid


class CageTrackError(Exception):
    """Base class for all typed domain failures."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.message}


class InvalidArgument(CageTrackError):
    """A request argument is outside its permitted range."""

    code = "invalid_argument"


class NotFound(CageTrackError):
    """Unknown QR code, cage or company within the active tenant scope."""

    code = "not_found"


class ValidationFailed(CageTrackError):
    """The resource-creation collaborator rejected the resource spec."""

    code = "validation_failed"


class AlreadyClaimed(CageTrackError):
    """The QR code is already bound to a resource.

    ``bound_resource_id`` is the resource the code points at, so the caller
    can redirect to it. ``orphaned_resource_id`` is set when this call had
    already created a resource before losing the binding race; nothing
    deletes it automatically.
    """

    code = "already_claimed"

    def __init__(
        self,
        qr_id: uuid.UUID,
        bound_resource_id: uuid.UUID | None,
        orphaned_resource_id: uuid.UUID | None = None,
    ) -> None:
        super().__init__(f"QR code {qr_id} has already been claimed")
        self.qr_id = qr_id
        self.bound_resource_id = bound_resource_id
        self.orphaned_resource_id = orphaned_resource_id

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "qr_id": str(self.qr_id),
            "bound_resource_id": (
                str(self.bound_resource_id) if self.bound_resource_id else None
            ),
            "orphaned_resource_id": (
                str(self.orphaned_resource_id) if self.orphaned_resource_id else None
            ),
        }
