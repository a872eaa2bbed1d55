from typing import Any, Dict, List, Optional
import logging

from ..core.exceptions import NotFoundError, WorkflowValidationError
from ..core.timestamps import now_iso
from ..database.maintenance_repository import MaintenanceRepository
from ..models.database_models import CreateEquipmentRequest, Equipment, EquipmentStatus

logger = logging.getLogger(__name__)

_OPTIONAL_TEXT_FIELDS = ('serial_number', 'location', 'owner_name', 'purchase_date', 'warranty_until')


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class EquipmentService:
    def __init__(self, repository: MaintenanceRepository):
        self.repo = repository

    def _normalize_payload(self, payload: CreateEquipmentRequest) -> Dict[str, Any]:
        """Trim text fields and store blank optional values as null"""
        data = payload.model_dump()
        for field in _OPTIONAL_TEXT_FIELDS:
            data[field] = _clean(data.get(field))
        for field in ('name', 'category', 'default_team_id', 'default_technician_id'):
            data[field] = (data.get(field) or '').strip()
        return data

    async def create_equipment(self, payload: CreateEquipmentRequest) -> Equipment:
        """
        Register equipment with its default maintenance team and technician.

        The default technician must belong to the default team at the time of
        creation. Later changes to team membership are not re-validated here.
        """
        data = self._normalize_payload(payload)

        if not data['name']:
            raise WorkflowValidationError("Equipment name is required")
        if not data['category']:
            raise WorkflowValidationError("Equipment category is required")
        if not data['default_team_id']:
            raise WorkflowValidationError("Default maintenance team is required")
        if not data['default_technician_id']:
            raise WorkflowValidationError("Default technician is required")

        team = await self.repo.get_team(data['default_team_id'])
        if team is None:
            raise NotFoundError("Team not found")
        if data['default_technician_id'] not in team.technician_ids:
            raise WorkflowValidationError("Default technician must be a member of the selected team")

        created_at = now_iso()
        equipment = Equipment(
            **data,
            status=EquipmentStatus.ACTIVE,
            created_at=created_at,
            updated_at=created_at,
        )
        created = await self.repo.create_equipment(equipment)
        logger.info(f"Created equipment {created.id} ({created.name}) for team {team.id}")
        return created

    async def get_equipment(self, equipment_id: str) -> Equipment:
        equipment = await self.repo.get_equipment(equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment not found")
        return equipment

    async def list_equipment(self) -> List[Equipment]:
        return await self.repo.list_equipment()
