"""
Custom Exception Hierarchy.

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues, mapped to HTTP errors)

Every BusinessLogicError carries the HTTP status and error code the API
layer returns, so handlers never have to guess.

Exports:
    ErrorCode: Error codes attached to every failure log
    ContractViolationError: Programming bug at a component boundary
    BusinessLogicError: Base class for expected request failures
    ValidationError: Request parameters rejected
    InvalidParameterError: A named parameter is malformed
    MissingParameterError: A mandatory parameter is absent
    ResourceNotFoundError: Requested data does not exist
    NoDataForSelectorError: No partition matches the time selector
    PartitionUnavailableError: An explicitly named partition file is missing
    DatabaseError: Query engine failure
    EngineQueryError: A partition query failed in the engine
    QueryTimeoutError: The request deadline expired before all queries finished
    ConfigurationError: Invalid startup configuration
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """
    Standardized error codes logged with every API failure.

    Used for monitoring and log queries, never for control flow.
    """
    # Client errors (HTTP 400, NOT RETRYABLE)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"

    # Engine errors (HTTP 500/504, RETRYABLE)
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_TIMEOUT = "DATABASE_TIMEOUT"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    These indicate:
    - Raw SQL strings passed where a QueryBuilder is required
    - Wrong model types crossing a layer boundary

    These should NEVER be caught and handled - they indicate bugs
    that need to be fixed in the code.
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime failures of a request.

    Subclasses set http_status and error_code; the API layer turns them
    into a JSON body {"error": message}.
    """
    http_status: int = 400
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Client-facing error body."""
        return {"error": self.message}


class ValidationError(BusinessLogicError):
    """
    Request validation failed.

    Note: This is different from ContractViolationError.
    This is for user input, not type contracts.
    """
    http_status = 400
    error_code = ErrorCode.VALIDATION_ERROR


class InvalidParameterError(ValidationError):
    """
    A specific query parameter is malformed.

    Examples:
        - limit=abc
        - bbox=1,2,3
        - month=January
    """
    error_code = ErrorCode.INVALID_PARAMETER

    def __init__(self, param: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid {param}", details={"parameter": param})
        self.param = param


class MissingParameterError(ValidationError):
    """
    A mandatory parameter is absent.

    Examples:
        - /origin without bbox or intersects
        - /destination without datetime
    """
    error_code = ErrorCode.MISSING_PARAMETER


class ResourceNotFoundError(BusinessLogicError):
    """Requested data does not exist."""
    http_status = 400
    error_code = ErrorCode.RESOURCE_NOT_FOUND


class NoDataForSelectorError(ResourceNotFoundError):
    """
    No partition is both configured and available for the time selector.

    Raised before the engine is touched.
    """

    def __init__(self, selector: Optional[str] = None):
        super().__init__("No data associated with datetime", details={"selector": selector})
        self.selector = selector


class PartitionUnavailableError(ResourceNotFoundError):
    """An explicitly requested partition file failed its existence check."""
    error_code = ErrorCode.FILE_NOT_FOUND

    def __init__(self, location: str):
        super().__init__(f"Parquet file is not available {location}", details={"location": location})
        self.location = location


class DatabaseError(BusinessLogicError):
    """Query engine failures."""
    http_status = 500
    error_code = ErrorCode.DATABASE_ERROR


class EngineQueryError(DatabaseError):
    """
    A partition query failed in DuckDB.

    The engine message is kept on the exception for logging; the client
    body only carries it when error details are exposed.
    """

    def __init__(self, message: str, partition: Optional[str] = None):
        super().__init__(message, details={"partition": partition})
        self.partition = partition


class QueryTimeoutError(EngineQueryError):
    """The per-request deadline expired; outstanding queries were cancelled."""
    http_status = 504
    error_code = ErrorCode.DATABASE_TIMEOUT


class ConfigurationError(Exception):
    """
    System configuration error.

    These are fatal and indicate misconfiguration that prevents the
    service from starting.

    Examples:
        - PARTITION_MONTHS contains 13
        - DEFAULT_PARTITION not in the catalog
    """
    pass
