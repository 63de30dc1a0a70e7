"""
Status helper module for the Need workflow
Centralizes the status ladders and status display logic so every endpoint agrees on them
"""
from dataclasses import dataclass
from typing import Optional


WORKFLOW_STOCK = "stock"
WORKFLOW_DISPATCH = "dispatch"

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_RESOLVED = "resolved"
STATUS_RESOURCES_DISPATCHED = "resources-dispatched"
STATUS_COMPLETED = "completed"

# Ordered: a need only ever moves to the right
WORKFLOW_LADDERS = {
    WORKFLOW_STOCK: (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_RESOLVED),
    WORKFLOW_DISPATCH: (STATUS_PENDING, STATUS_RESOURCES_DISPATCHED, STATUS_COMPLETED),
}

ALL_NEED_STATUSES = (
    STATUS_PENDING,
    STATUS_IN_PROGRESS,
    STATUS_RESOLVED,
    STATUS_RESOURCES_DISPATCHED,
    STATUS_COMPLETED,
)

TERMINAL_STATUSES = (STATUS_RESOLVED, STATUS_COMPLETED)


@dataclass
class NeedStatusDisplay:
    """
    Represents the display status for a need

    Attributes:
        label: Display text for the status (e.g., "Pending", "Resources Dispatched")
        tone: UI tone hint (e.g., "success", "warning")
        detail_text: Optional additional context (e.g., "6 of 10 delivered")
        progress_pct: Optional progress percentage for visualization (0-100)
    """
    label: str
    tone: str
    detail_text: Optional[str] = None
    progress_pct: Optional[int] = None

    def to_dict(self):
        return {
            "label": self.label,
            "tone": self.tone,
            "detailText": self.detail_text,
            "progressPct": self.progress_pct,
        }


def get_ladder(workflow):
    """Return the ordered statuses for a workflow name"""
    try:
        return WORKFLOW_LADDERS[workflow]
    except KeyError:
        raise ValueError(f"Unknown workflow: {workflow}") from None


def is_on_ladder(status, workflow):
    return status in get_ladder(workflow)


def is_terminal(status):
    return status in TERMINAL_STATUSES


def advance_status(current, target, workflow):
    """
    Move a status forward along a workflow ladder, never backwards

    Args:
        current: str - the need's present status
        target: str - the status the caller wants to reach
        workflow: str - WORKFLOW_STOCK or WORKFLOW_DISPATCH

    Returns:
        str: target when it is further along the ladder than current, otherwise current
    """
    ladder = get_ladder(workflow)
    if current not in ladder or target not in ladder:
        raise ValueError(f"'{current}' -> '{target}' is not a {workflow} workflow transition")

    if ladder.index(target) > ladder.index(current):
        return target
    return current


def translate_status(status, from_workflow, to_workflow):
    """Map a status onto the same rung of another workflow's ladder"""
    source = get_ladder(from_workflow)
    if status not in source:
        return status
    return get_ladder(to_workflow)[source.index(status)]


def get_need_status_display(need):
    """
    Determine the display status for a need based on workflow state and quantities

    Args:
        need: Need object with status, required_quantity, fulfilled_quantity

    Returns:
        NeedStatusDisplay
    """
    status = need.status
    required = need.required_quantity or 0
    fulfilled = need.fulfilled_quantity or 0

    # Guard against division by zero
    if required <= 0:
        progress_pct = 0
    else:
        progress_pct = min(100, int(fulfilled / required * 100))

    if status == STATUS_PENDING:
        return NeedStatusDisplay(
            label="Pending",
            tone="secondary",
            detail_text="Awaiting response",
            progress_pct=progress_pct
        )

    if status == STATUS_IN_PROGRESS:
        return NeedStatusDisplay(
            label="In Progress",
            tone="warning",
            detail_text=f"{fulfilled} of {required} fulfilled",
            progress_pct=progress_pct
        )

    if status == STATUS_RESOURCES_DISPATCHED:
        return NeedStatusDisplay(
            label="Resources Dispatched",
            tone="info",
            detail_text=f"{fulfilled} of {required} delivered",
            progress_pct=progress_pct
        )

    if status in TERMINAL_STATUSES:
        detail = "Fully fulfilled"
        if fulfilled > required:
            detail = f"Fulfilled with {fulfilled - required} extra"
        return NeedStatusDisplay(
            label=status.capitalize(),
            tone="success",
            detail_text=detail,
            progress_pct=100
        )

    # Fallback for any unknown status (should not occur in normal operation)
    return NeedStatusDisplay(
        label=status,
        tone="secondary",
        detail_text="Unknown workflow state"
    )
