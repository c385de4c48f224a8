"""Revenue Workflows.

State machine for pending revenues.
"""

from fieldops_kernel.domain.workflow import Transition, Workflow
from fieldops_kernel.models.revenue import PendingRevenueStatus

PENDING = PendingRevenueStatus.PENDING.value
RECEIVED = PendingRevenueStatus.RECEIVED.value
CANCELLED = PendingRevenueStatus.CANCELLED.value

PENDING_REVENUE_WORKFLOW = Workflow(
    name="pending_revenue",
    description="Pending revenue lifecycle: received once, or cancelled",
    initial_state=PENDING,
    states=(PENDING, RECEIVED, CANCELLED),
    transitions=(
        Transition(PENDING, RECEIVED, action="confirm"),
        Transition(PENDING, CANCELLED, action="cancel"),
    ),
    terminal_states=(RECEIVED, CANCELLED),
)
