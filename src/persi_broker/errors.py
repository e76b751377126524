"""Error handling module for persi_broker.

This module defines error codes, exception classes, and response models.

Two classes of errors:
- Domain conflicts: precise, caller-recoverable conditions
  (plan not recognized, instance already exists, binding does not exist, ...)
- Store failures: any claim store error other than not-found, wrapped with
  the operation context ("error provisioning", "error binding", ...)

Error Response Format:
{
    "description": "instance does not exist",
    "error": {
        "code": "INSTANCE_DOES_NOT_EXIST",
        "message": "instance does not exist"
    }
}
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the broker API."""

    PLAN_ID_REQUIRED = "PLAN_ID_REQUIRED"
    PLAN_NOT_RECOGNIZED = "PLAN_NOT_RECOGNIZED"
    INSTANCE_ALREADY_EXISTS = "INSTANCE_ALREADY_EXISTS"
    INSTANCE_DOES_NOT_EXIST = "INSTANCE_DOES_NOT_EXIST"
    BINDING_ALREADY_EXISTS = "BINDING_ALREADY_EXISTS"
    BINDING_DOES_NOT_EXIST = "BINDING_DOES_NOT_EXIST"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    PLAN_HAS_NO_DEFAULT_SIZE = "PLAN_HAS_NO_DEFAULT_SIZE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_RESOURCE_STATE = "INVALID_RESOURCE_STATE"
    PROVISION_FAILED = "PROVISION_FAILED"
    DEPROVISION_FAILED = "DEPROVISION_FAILED"
    BIND_FAILED = "BIND_FAILED"
    UNBIND_FAILED = "UNBIND_FAILED"
    LOOKUP_FAILED = "LOOKUP_FAILED"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format.

    ``description`` is the field Open Service Broker clients display.
    """

    description: str
    error: ErrorDetail


class BrokerError(Exception):
    """Base exception for persi_broker.

    All broker-specific exceptions should inherit from this class.
    This enables centralized exception handling in FastAPI.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code to return.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            description=self.message,
            error=ErrorDetail(code=self.code.value, message=self.message),
        )


# =============================================================================
# Domain conflicts
# =============================================================================


class PlanIDRequiredError(BrokerError):
    """400 Bad Request - No plan identifier given."""

    def __init__(self, message: str = "plan_id required") -> None:
        super().__init__(ErrorCode.PLAN_ID_REQUIRED, message, 400)


class PlanNotRecognizedError(BrokerError):
    """400 Bad Request - Plan identifier not in the catalog."""

    def __init__(self, message: str = "plan_id not recognized") -> None:
        super().__init__(ErrorCode.PLAN_NOT_RECOGNIZED, message, 400)


class InstanceAlreadyExistsError(BrokerError):
    """409 Conflict - A claim with the instance name already exists."""

    def __init__(self, message: str = "instance already exists") -> None:
        super().__init__(ErrorCode.INSTANCE_ALREADY_EXISTS, message, 409)


class InstanceDoesNotExistError(BrokerError):
    """404 Not Found - No claim with the instance name."""

    def __init__(self, message: str = "instance does not exist") -> None:
        super().__init__(ErrorCode.INSTANCE_DOES_NOT_EXIST, message, 404)


class BindingAlreadyExistsError(BrokerError):
    """409 Conflict - The binding annotation is already present."""

    def __init__(self, message: str = "binding already exists") -> None:
        super().__init__(ErrorCode.BINDING_ALREADY_EXISTS, message, 409)


class BindingDoesNotExistError(BrokerError):
    """404 Not Found - The binding annotation is absent."""

    def __init__(self, message: str = "binding does not exist") -> None:
        super().__init__(ErrorCode.BINDING_DOES_NOT_EXIST, message, 404)


class InvalidParametersError(BrokerError):
    """400 Bad Request - User parameters do not match the schema."""

    def __init__(self, message: str = "invalid parameters") -> None:
        super().__init__(ErrorCode.INVALID_PARAMETERS, message, 400)


class PlanHasNoDefaultSizeError(BrokerError):
    """400 Bad Request - No size given and the plan has no default."""

    def __init__(self, message: str = "plan doesn't have a default size") -> None:
        super().__init__(ErrorCode.PLAN_HAS_NO_DEFAULT_SIZE, message, 400)


class InvalidQuantityError(BrokerError):
    """400 Bad Request - Malformed storage quantity."""

    def __init__(self, message: str = "invalid quantity string") -> None:
        super().__init__(ErrorCode.INVALID_QUANTITY, message, 400)


class InvalidResourceStateError(BrokerError):
    """500 Internal Server Error - Claim lacks a field the broker relies on."""

    def __init__(self, message: str = "invalid resource state") -> None:
        super().__init__(ErrorCode.INVALID_RESOURCE_STATE, message, 500)


# =============================================================================
# Store failures
# =============================================================================


class StoreOperationError(BrokerError):
    """500 Internal Server Error - Claim store call failed."""


class ProvisionFailedError(StoreOperationError):
    def __init__(self, message: str = "error provisioning") -> None:
        super().__init__(ErrorCode.PROVISION_FAILED, message, 500)


class DeprovisionFailedError(StoreOperationError):
    def __init__(self, message: str = "error deprovisioning") -> None:
        super().__init__(ErrorCode.DEPROVISION_FAILED, message, 500)


class BindFailedError(StoreOperationError):
    def __init__(self, message: str = "error binding") -> None:
        super().__init__(ErrorCode.BIND_FAILED, message, 500)


class UnbindFailedError(StoreOperationError):
    def __init__(self, message: str = "error unbinding") -> None:
        super().__init__(ErrorCode.UNBIND_FAILED, message, 500)


class LookupFailedError(StoreOperationError):
    def __init__(self, message: str = "error getting instance") -> None:
        super().__init__(ErrorCode.LOOKUP_FAILED, message, 500)
