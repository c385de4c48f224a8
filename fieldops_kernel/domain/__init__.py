"""
Module: fieldops_kernel.domain
Responsibility: Pure domain value objects shared by every layer: Money and
    Currency, the Clock abstraction, workflow state machines, operation
    results and boundary enum coercion.
Architecture position: Kernel > Domain.  ZERO I/O.  May import kernel
    exceptions, messages and logging only.
"""

from fieldops_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from fieldops_kernel.domain.results import (
    OperationResult,
    OperationStatus,
    run_operation,
)
from fieldops_kernel.domain.values import Currency, Money
from fieldops_kernel.domain.workflow import Transition, Workflow

__all__ = [
    "Clock",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Money",
    "OperationResult",
    "OperationStatus",
    "SystemClock",
    "Transition",
    "Workflow",
    "coerce_enum",
    "run_operation",
]
