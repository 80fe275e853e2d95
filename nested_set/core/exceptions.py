"""
Exception hierarchy for nested set operations.

Three families matter to callers:

- PreconditionViolation: bad input (missing parent, illegal move,
  malformed intervals). Fatal, never retried.
- ConcurrencyConflict: lock contention or timeout. Safe to retry, the
  unit of work was rolled back.
- ConsistencyViolation: interval invariants broken after a mutation or in
  stored data. Indicates a bug or corruption; only rebuild repairs it.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""


class NestedSetError(Exception):
    """Base exception for nested set operations."""

    retryable = False

    def __init__(self, message: str, code: str = None, details: dict = None):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Optional error code for programmatic handling
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class PreconditionViolation(NestedSetError):
    """Raised when an operation is called with input it cannot accept."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(
            message, code=code or "PRECONDITION_VIOLATION", details=details
        )


class NodeNotFoundError(PreconditionViolation):
    """Raised when a referenced node does not exist in the store."""

    def __init__(self, message: str, node_id=None, details: dict = None):
        """
        Initialize not-found error.

        Args:
            message: Error message
            node_id: Identifier that could not be resolved
            details: Optional additional details
        """
        super().__init__(message, code="NODE_NOT_FOUND", details=details)
        self.node_id = node_id


class InvalidMoveError(PreconditionViolation):
    """Raised when a node would be moved under itself or its own descendant."""

    def __init__(self, message: str, node_id=None, target_id=None, details: dict = None):
        super().__init__(message, code="INVALID_MOVE", details=details)
        self.node_id = node_id
        self.target_id = target_id


class MalformedIntervalError(PreconditionViolation):
    """Raised when a node carries interval values that cannot be valid."""

    def __init__(self, message: str, node_id=None, details: dict = None):
        super().__init__(message, code="MALFORMED_INTERVAL", details=details)
        self.node_id = node_id


class ConcurrencyConflict(NestedSetError):
    """Raised when a unit of work could not acquire the locks it needs."""

    retryable = True

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message, code=code or "CONCURRENCY_CONFLICT", details=details)


class LockTimeoutError(ConcurrencyConflict):
    """Raised when waiting for a lock exceeds the configured timeout."""

    def __init__(
        self,
        message: str,
        node_id=None,
        timeout: float = None,
        details: dict = None,
    ):
        """
        Initialize lock timeout error.

        Args:
            message: Error message
            node_id: Locked record, or None for the forest-wide write lock
            timeout: Timeout in seconds that expired
            details: Optional additional details
        """
        super().__init__(message, code="LOCK_TIMEOUT", details=details)
        self.node_id = node_id
        self.timeout = timeout


class ConsistencyViolation(NestedSetError):
    """Raised when interval invariants do not hold."""

    def __init__(self, message: str, node_ids: list = None, details: dict = None):
        super().__init__(message, code="CONSISTENCY_VIOLATION", details=details)
        self.node_ids = list(node_ids or [])


class StoreError(NestedSetError):
    """Raised when the backing store fails."""

    def __init__(
        self,
        message: str,
        operation: str = None,
        cause: Exception = None,
        code: str = None,
        details: dict = None,
    ):
        """
        Initialize store error.

        Args:
            message: Error message
            operation: Store operation name (e.g., 'save_all', 'find_subtree')
            cause: Original exception that caused this error
            code: Optional error code override
            details: Optional additional details
        """
        super().__init__(message, code=code or "STORE_ERROR", details=details)
        self.operation = operation
        self.cause = cause


class StoreConnectionError(StoreError):
    """Raised when the store cannot be opened."""

    def __init__(self, message: str, cause: Exception = None, details: dict = None):
        super().__init__(
            message,
            operation="connect",
            cause=cause,
            code="STORE_CONNECTION_ERROR",
            details=details,
        )


class TransactionError(StoreError):
    """Raised when a transaction is misused or cannot be completed."""

    def __init__(self, message: str, cause: Exception = None, details: dict = None):
        super().__init__(
            message,
            operation="transaction",
            cause=cause,
            code="TRANSACTION_ERROR",
            details=details,
        )
