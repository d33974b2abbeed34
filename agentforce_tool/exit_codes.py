"""Central exit-code taxonomy for agentforce-tool."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes.

    Zero is reserved for a response envelope without an ``error`` field.
    """

    SUCCESS = 0
    INPUT_MISSING = 1
    INVALID_INPUT = 2
    OPERATION_FAILED = 40
    INTERNAL_ERROR = 70
