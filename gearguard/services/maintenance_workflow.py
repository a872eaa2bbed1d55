"""
Maintenance request workflow.

Holds the status machine and the team-membership rules for maintenance
requests. The engine keeps no state of its own: every call re-reads the
entities it needs through the injected repository and then writes.

Known races (accepted, not guarded): reads and writes are not wrapped in a
transaction, so a technician removed from a team between the membership check
and the write is not caught, and two concurrent transitions on one request
can both pass validation. Scrapping writes the request first and the
equipment second with no rollback; if the second write fails the request
stays in `scrap` while its equipment remains `active`.
"""

import logging
import math
from typing import Dict, FrozenSet, List, Optional

from ..core.exceptions import (
    InvalidStatusTransitionError,
    NotFoundError,
    TechnicianNotInTeamError,
    WorkflowValidationError,
)
from ..core.timestamps import now_iso
from ..database.maintenance_repository import MaintenanceRepository
from ..models.database_models import MaintenanceRequest, RequestStatus, RequestType

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    RequestStatus.NEW.value: frozenset({RequestStatus.IN_PROGRESS.value, RequestStatus.SCRAP.value}),
    RequestStatus.IN_PROGRESS.value: frozenset({RequestStatus.REPAIRED.value, RequestStatus.SCRAP.value}),
    RequestStatus.REPAIRED.value: frozenset(),
    RequestStatus.SCRAP.value: frozenset(),
}


def is_team_member(technician_ids: List[str], technician_id: str) -> bool:
    return technician_id in technician_ids


def is_transition_allowed(current: str, next_status: str) -> bool:
    return next_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def _is_valid_duration(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value) and value >= 0


class MaintenanceWorkflow:
    def __init__(self, repository: MaintenanceRepository):
        self.repo = repository

    async def create_request(
        self,
        request_type: str,
        subject: str,
        equipment_id: str,
        description: Optional[str] = None,
        technician_id: Optional[str] = None,
        scheduled_at: Optional[str] = None,
    ) -> MaintenanceRequest:
        """
        Open a new maintenance request against a piece of equipment.

        The request inherits the equipment's default team. The technician is
        the one supplied, or else the equipment's default technician; when
        neither is set the request is created unassigned.
        """
        equipment = await self.repo.get_equipment(equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment not found")

        team_id = equipment.default_team_id
        if not team_id or not team_id.strip():
            raise WorkflowValidationError("Equipment has no default maintenance team")

        team = await self.repo.get_team(team_id)
        if team is None:
            raise NotFoundError("Default maintenance team not found")

        effective_technician = technician_id or equipment.default_technician_id or None
        if effective_technician is not None and not is_team_member(team.technician_ids, effective_technician):
            raise TechnicianNotInTeamError()

        request_type = getattr(request_type, "value", request_type)
        if request_type not in {t.value for t in RequestType}:
            raise WorkflowValidationError(f"Invalid request type: {request_type}")

        created_at = now_iso()
        request = MaintenanceRequest(
            type=request_type,
            subject=subject,
            description=description,
            equipment_id=equipment.id,
            equipment_category=equipment.category or "Uncategorized",
            team_id=team.id,
            technician_id=effective_technician,
            scheduled_at=scheduled_at,
            duration_hours=None,
            status=RequestStatus.NEW,
            created_at=created_at,
            updated_at=created_at,
        )
        created = await self.repo.create_request(request)
        logger.info(f"Created maintenance request {created.id} for equipment {equipment.id} (team {team.id})")
        return created

    async def update_status(
        self,
        request_id: str,
        next_status: str,
        technician_id: Optional[str] = None,
        duration_hours: Optional[float] = None,
    ) -> None:
        request = await self.repo.get_request(request_id)
        if request is None:
            raise NotFoundError("Request not found")

        current = request.status
        next_status = getattr(next_status, "value", next_status)
        if not is_transition_allowed(current, next_status):
            raise InvalidStatusTransitionError(current, next_status)

        if next_status == RequestStatus.IN_PROGRESS.value:
            effective_technician = technician_id or request.technician_id
            if not effective_technician:
                raise WorkflowValidationError("Technician must be assigned to move to In Progress")

            team = await self.repo.get_team(request.team_id)
            if team is None:
                raise NotFoundError("Team not found")
            if not is_team_member(team.technician_ids, effective_technician):
                raise TechnicianNotInTeamError()

            await self.repo.update_request(request.id, {
                'status': RequestStatus.IN_PROGRESS.value,
                'technician_id': effective_technician,
            })

        elif next_status == RequestStatus.REPAIRED.value:
            if not _is_valid_duration(duration_hours):
                raise WorkflowValidationError("Duration hours is required")

            await self.repo.update_request(request.id, {
                'status': RequestStatus.REPAIRED.value,
                'duration_hours': duration_hours,
            })

        elif next_status == RequestStatus.SCRAP.value:
            # Two independent writes, request first; see module docstring
            await self.repo.update_request(request.id, {'status': RequestStatus.SCRAP.value})
            await self.repo.mark_equipment_scrapped(request.equipment_id)
            logger.info(f"Equipment {request.equipment_id} scrapped by request {request.id}")

        logger.info(f"Request {request.id}: {current} -> {next_status}")

    async def assign_technician(self, request_id: str, technician_id: str) -> None:
        """Assign or reassign the technician on a request without changing its status."""
        request = await self.repo.get_request(request_id)
        if request is None:
            raise NotFoundError("Request not found")

        team = await self.repo.get_team(request.team_id)
        if team is None:
            raise NotFoundError("Team not found")
        if not is_team_member(team.technician_ids, technician_id):
            raise TechnicianNotInTeamError()

        await self.repo.update_request(request.id, {'technician_id': technician_id})
        logger.info(f"Request {request.id} assigned to technician {technician_id}")

    async def get_request(self, request_id: str) -> MaintenanceRequest:
        request = await self.repo.get_request(request_id)
        if request is None:
            raise NotFoundError("Request not found")
        return request

    async def list_requests(
        self,
        status: Optional[str] = None,
        equipment_id: Optional[str] = None,
        open_only: bool = False,
        preventive: bool = False,
    ) -> List[MaintenanceRequest]:
        """
        Run one of the request queries. `preventive` wins over `open_only`,
        which wins over `status`. `equipment_id` narrows a `status` query and
        is rejected on its own.
        """
        if equipment_id and not status:
            raise WorkflowValidationError("Equipment filter requires a status")
        if preventive:
            return await self.repo.list_preventive_requests()
        if open_only:
            return await self.repo.list_open_requests()
        if status:
            return await self.repo.list_requests_by_status(status, equipment_id=equipment_id)
        return await self.repo.list_all_requests()
