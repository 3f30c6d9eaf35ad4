"""
State machine for application pipeline status.
ALL status changes on Application rows must go through this module.

Transitions are permissive: any status may follow any other
(users correct mistaken clicks), and offer/rejected are terminal by
convention only. The one side effect is stamping applied_at on the first
entry into "applied".
"""
import logging
from datetime import datetime
from typing import Dict, Optional, Union

from sqlalchemy import case

from opportunity.database_types import utcnow
from opportunity.exceptions import ValidationError
from opportunity.models.application import Application, PipelineStatus

logger = logging.getLogger(__name__)


# Display/sort order; offer and rejected share the final rank
STATUS_ORDER: Dict[PipelineStatus, int] = {
    PipelineStatus.SAVED: 0,
    PipelineStatus.APPLIED: 1,
    PipelineStatus.INTERVIEW: 2,
    PipelineStatus.OFFER: 3,
    PipelineStatus.REJECTED: 3,
}

TERMINAL_STATUSES = frozenset({PipelineStatus.OFFER, PipelineStatus.REJECTED})


def parse_status(value: Union[str, PipelineStatus]) -> PipelineStatus:
    """Coerce user input to a PipelineStatus or raise ValidationError."""
    if isinstance(value, PipelineStatus):
        return value
    try:
        return PipelineStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in PipelineStatus)
        raise ValidationError(
            f"Invalid status '{value}'. Must be one of: {allowed}",
            details={"field": "status", "value": value},
        )


def can_transition(from_status: PipelineStatus, to_status: PipelineStatus) -> bool:
    """Every status may follow every other; only the enum is enforced."""
    return from_status in STATUS_ORDER and to_status in STATUS_ORDER


def is_terminal(status: PipelineStatus) -> bool:
    return status in TERMINAL_STATUSES


def apply_transition(
    application: Application,
    to_status: Union[str, PipelineStatus],
    now: Optional[datetime] = None
) -> PipelineStatus:
    """
    Move an application to a new status in memory (caller persists).

    Args:
        application: The application to update
        to_status: Target status (validated against the enum)
        now: Timestamp used when stamping applied_at (defaults to utcnow)

    Returns:
        The previous status

    Raises:
        ValidationError: If to_status is not a pipeline status or the move is not allowed
    """
    target = parse_status(to_status)
    previous = PipelineStatus(application.status)

    if not can_transition(previous, target):
        raise ValidationError(
            f"Cannot move application from {previous.value} to {target.value}",
            details={"from_status": previous.value, "to_status": target.value},
        )

    application.status = target.value

    # First entry into "applied" stamps the date; later re-entries keep it
    if target == PipelineStatus.APPLIED and application.applied_at is None:
        application.applied_at = now or utcnow()

    if is_terminal(previous) and previous != target:
        logger.info(
            f"Application {application.id} reopened from terminal status {previous.value}",
            extra={"application_id": str(application.id), "from_status": previous.value, "to_status": target.value},
        )

    return previous


def status_rank_expression(column):
    """SQL expression ranking a status column by STATUS_ORDER."""
    return case(
        {status.value: rank for status, rank in STATUS_ORDER.items()},
        value=column,
        else_=len(STATUS_ORDER),
    )
