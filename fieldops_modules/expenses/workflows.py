"""Expense Workflows.

Approval lifecycle for employee expenses.  Every move is an administrator
decision.
"""

from fieldops_kernel.domain.workflow import Transition, Workflow
from fieldops_kernel.models.expense import ExpenseStatus

PENDING = ExpenseStatus.PENDING.value
APPROVED = ExpenseStatus.APPROVED.value
REIMBURSED = ExpenseStatus.REIMBURSED.value
REJECTED = ExpenseStatus.REJECTED.value

EXPENSE_WORKFLOW = Workflow(
    name="expense",
    description="Expense approval and reimbursement",
    initial_state=PENDING,
    states=(PENDING, APPROVED, REIMBURSED, REJECTED),
    transitions=(
        Transition(PENDING, APPROVED, action="approve", admin_only=True),
        Transition(PENDING, REJECTED, action="reject", admin_only=True),
        Transition(APPROVED, REIMBURSED, action="reimburse", admin_only=True),
    ),
    terminal_states=(REIMBURSED, REJECTED),
)
