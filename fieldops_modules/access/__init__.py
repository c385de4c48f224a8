"""
Access Code Module (``fieldops_modules.access``).

Responsibility
--------------
Onboarding of employees and providers through one-time access codes, and
the company's employee directory.

Invariants enforced
-------------------
* Codes are unique system-wide, uppercase, and redeemable exactly once.
* A code joins only the profile whose email it was issued to.
"""

from fieldops_modules.access.models import AccessCodeInfo, Redemption
from fieldops_modules.access.service import AccessCodeService

__all__ = [
    "AccessCodeInfo",
    "AccessCodeService",
    "Redemption",
]
