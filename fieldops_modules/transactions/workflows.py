"""Transaction Workflows.

Ledger transactions are append-only; status is the only column that moves.
"""

from fieldops_kernel.domain.workflow import Transition, Workflow
from fieldops_kernel.models.transaction import TransactionStatus

PENDING = TransactionStatus.PENDING.value
COMPLETED = TransactionStatus.COMPLETED.value
CANCELLED = TransactionStatus.CANCELLED.value

TRANSACTION_WORKFLOW = Workflow(
    name="transaction",
    description="Cash-flow transaction settlement",
    initial_state=PENDING,
    states=(PENDING, COMPLETED, CANCELLED),
    transitions=(
        Transition(PENDING, COMPLETED, action="complete"),
        Transition(PENDING, CANCELLED, action="cancel"),
    ),
    terminal_states=(COMPLETED, CANCELLED),
)
