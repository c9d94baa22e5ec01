"""CloudFormation status pundits.

A pundit classifies a stack status string as complete (no more polling
needed) and healthy (only meaningful once complete). The wait loop in
AWSClient takes a pundit as its stopping rule, so one loop serves both
upsert and delete.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

# Status reported by AWSClient when describe_stacks says the stack is gone
STACK_NOT_FOUND = "STACK_NOT_FOUND"


class StatusPundit(Protocol):
    """Classifies a stack status string."""

    def is_complete(self, status: str) -> bool: ...

    def is_healthy(self, status: str) -> bool: ...


@dataclass(frozen=True)
class UpsertPundit:
    """Stopping rule for create/update. A vanished stack counts as failed."""

    def is_complete(self, status: str) -> bool:
        return (
            status.endswith("_COMPLETE")
            or status.endswith("_FAILED")
            or status.startswith("ROLLBACK_")
            or status == STACK_NOT_FOUND
        )

    def is_healthy(self, status: str) -> bool:
        return status.endswith("_COMPLETE") and "ROLLBACK" not in status


@dataclass(frozen=True)
class DeletePundit:
    """Stopping rule for delete. A vanished stack counts as deleted."""

    def is_complete(self, status: str) -> bool:
        return status in ("DELETE_COMPLETE", "DELETE_FAILED", STACK_NOT_FOUND)

    def is_healthy(self, status: str) -> bool:
        return status in ("DELETE_COMPLETE", STACK_NOT_FOUND)
