"""
Lifecycle Outcome Enum.

Result values for connection and transaction state transitions.
"""
from enum import Enum


class LifecycleOutcome(str, Enum):
    """
    Outcome of a connection or transaction state transition.

    Only SUCCESS is truthy, so callers written against a plain
    boolean contract keep working:

        if not await connection.try_open(context):
            ...
    """

    SUCCESS = "success"
    ALREADY_IN_STATE = "already_in_state"
    CONFLICT = "conflict"

    def __bool__(self) -> bool:
        return self is LifecycleOutcome.SUCCESS
