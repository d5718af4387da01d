# services/exceptions.py
"""
Error taxonomy of the billing engine.

Every user-facing failure is one of NotFound, InvalidState, ValidationError
or ConflictError. The API layer maps each kind to an HTTP status in one
exception handler (see main.py). ArithmeticInvariantViolation is internal:
it aborts the write and is reported as a server error.
"""


class BillingError(Exception):
     """Base class for billing engine errors."""

     status_code = 400
     kind = "billing_error"

     def __init__(self, message: str):
          self.message = message
          super().__init__(message)


class NotFound(BillingError):
     """Referenced invoice, line item or payment does not exist (or is soft-deleted)."""

     status_code = 404
     kind = "not_found"


class InvalidState(BillingError):
     """Mutation attempted against an invoice whose status forbids it."""

     status_code = 400
     kind = "invalid_state"


class ValidationError(BillingError):
     """Malformed input rejected before any state is touched."""

     status_code = 422
     kind = "validation_error"


class ConflictError(BillingError):
     """The invoice changed underneath us; retry against fresh state."""

     status_code = 409
     kind = "conflict"


class ArithmeticInvariantViolation(BillingError):
     """Stored totals failed to reconcile. Indicates a bug, never user input."""

     status_code = 500
     kind = "invariant_violation"

     def __init__(self, message: str, details: dict = None):
          self.details = details or {}
          super().__init__(message)
