from __future__ import annotations
"""Error taxonomy for the order lifecycle and access-control layer.

Every error is a werkzeug ``HTTPException`` so route handlers can simply let it
propagate; the application error handler renders the status, a caller-safe
message and the ``kind`` tag. Internal detail is logged where the error is
raised, never put into ``description``.
"""
from werkzeug.exceptions import HTTPException


class RepairDeskError(HTTPException):
    code = 400
    kind = 'InvalidInput'
    description = 'Invalid request'

    def __init__(self, description: str | None = None):
        super().__init__(description=description or self.description)


class Unauthenticated(RepairDeskError):
    code = 401
    kind = 'Unauthenticated'
    description = 'Authentication required'


class InvalidCredential(RepairDeskError):
    code = 401
    kind = 'InvalidCredential'
    description = 'Access token invalid or expired'


class Forbidden(RepairDeskError):
    code = 403
    kind = 'Forbidden'
    description = 'Permission denied'


class NotFound(RepairDeskError):
    code = 404
    kind = 'NotFound'
    description = 'Order not found'


class InvalidInput(RepairDeskError):
    code = 400
    kind = 'InvalidInput'


class InvalidState(RepairDeskError):
    code = 400
    kind = 'InvalidState'
    description = 'Invalid order status'


class InvalidTechnician(RepairDeskError):
    code = 400
    kind = 'InvalidTechnician'
    description = 'Technician not found'


class Internal(RepairDeskError):
    code = 500
    kind = 'Internal'
    description = 'Internal server error'


__all__ = [
    'RepairDeskError', 'Unauthenticated', 'InvalidCredential', 'Forbidden', 'NotFound',
    'InvalidInput', 'InvalidState', 'InvalidTechnician', 'Internal',
]
