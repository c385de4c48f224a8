"""
Missions Module (``fieldops_modules.missions``).

Responsibility
--------------
Service dispatch jobs: client, schedule, assigned providers and the split
of the service value between the company and its providers.
"""

from fieldops_modules.missions.models import MissionApproval, MissionInfo, SplitPreview
from fieldops_modules.missions.service import MissionService

__all__ = [
    "MissionApproval",
    "MissionInfo",
    "MissionService",
    "SplitPreview",
]
