"""Provider Payment Workflows.

State machine for payments owed to providers.  Partial settlement is
applied only by the settlement procedure, never through these actions.
"""

from fieldops_kernel.domain.workflow import Transition, Workflow
from fieldops_kernel.models.payment import PaymentStatus

PENDING = PaymentStatus.PENDING.value
PARTIAL = PaymentStatus.PARTIAL.value
COMPLETED = PaymentStatus.COMPLETED.value
OVERDUE = PaymentStatus.OVERDUE.value
CANCELLED = PaymentStatus.CANCELLED.value

PAYMENT_WORKFLOW = Workflow(
    name="provider_payment",
    description="Provider payment lifecycle",
    initial_state=PENDING,
    states=(PENDING, PARTIAL, COMPLETED, OVERDUE, CANCELLED),
    transitions=(
        Transition(PENDING, COMPLETED, action="mark_paid", admin_only=True),
        Transition(PARTIAL, COMPLETED, action="mark_paid", admin_only=True),
        Transition(OVERDUE, COMPLETED, action="mark_paid", admin_only=True),
        Transition(PENDING, OVERDUE, action="mark_overdue"),
        Transition(PENDING, CANCELLED, action="cancel", admin_only=True),
        Transition(OVERDUE, CANCELLED, action="cancel", admin_only=True),
    ),
    terminal_states=(COMPLETED, CANCELLED),
)

# Statuses a payment may be recorded with directly.
CREATABLE_STATUSES = (PENDING, OVERDUE, COMPLETED)
