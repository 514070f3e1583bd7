from ridersbud.lifecycle.status_machine import (
    CancellationReasonRequired,
    InvalidTransitionError,
    apply_status,
    is_terminal,
    valid_targets,
)

__all__ = [
    "apply_status",
    "valid_targets",
    "is_terminal",
    "InvalidTransitionError",
    "CancellationReasonRequired",
]
