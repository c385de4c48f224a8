"""
fieldops_services -- Trusted procedure layer.

Runs every multi-row financial write of the system atomically, bound to
the authenticated caller.  Module services build a dispatcher with
``build_dispatcher`` and call procedures by name.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from fieldops_kernel.domain.clock import Clock
from fieldops_services.procedure_dispatcher import (
    ProcedureContext,
    ProcedureDispatcher,
    TrustedProcedure,
)
from fieldops_services.procedures import (
    convert_pending_to_confirmed_revenue,
    manually_settle_pending_payments,
    provider_balance,
    recalculate_provider_balance,
    redeem_access_code,
    register_standard_procedures,
)


def build_dispatcher(
    session: Session,
    caller_id: UUID,
    clock: Clock | None = None,
    currency: str = "BRL",
    locale: str = "en",
) -> ProcedureDispatcher:
    """A dispatcher for ``caller_id`` with the standard procedures registered."""
    dispatcher = ProcedureDispatcher(session, caller_id, clock=clock, currency=currency, locale=locale)
    register_standard_procedures(dispatcher)
    return dispatcher


__all__ = [
    "ProcedureContext",
    "ProcedureDispatcher",
    "TrustedProcedure",
    "build_dispatcher",
    "convert_pending_to_confirmed_revenue",
    "manually_settle_pending_payments",
    "provider_balance",
    "recalculate_provider_balance",
    "redeem_access_code",
    "register_standard_procedures",
]
