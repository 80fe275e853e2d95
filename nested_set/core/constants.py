"""
Project-wide constants.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

# ============================================================================
# Interval encoding
# ============================================================================

# Width of the gap reserved for a single new node (left and right slot).
NODE_WIDTH = 2

# Rebuild starts counting here; the first child receives FOREST_BOUNDARY + 1.
FOREST_BOUNDARY = 0


# ============================================================================
# Store
# ============================================================================

STORE_TYPES = ("memory", "sqlite")

DEFAULT_STORE_TYPE = "memory"

# Seconds to wait for the forest write lock or a record lock.
DEFAULT_LOCK_TIMEOUT = 5.0

# SQLite table holding interval-encoded records.
NODES_TABLE = "nested_set_nodes"


# ============================================================================
# Logging
# ============================================================================

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_LOG_LEVEL = "INFO"


# ============================================================================
# CLI exit codes
# ============================================================================

EXIT_ERROR = 1
# EX_TEMPFAIL from sysexits.h: the caller may retry.
EXIT_RETRYABLE = 75
