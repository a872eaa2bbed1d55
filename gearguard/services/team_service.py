from typing import List, Optional
import logging

from ..core.exceptions import NotFoundError, WorkflowValidationError
from ..core.timestamps import now_iso
from ..database.maintenance_repository import MaintenanceRepository
from ..models.database_models import MaintenanceTeam, Technician

logger = logging.getLogger(__name__)


class TeamService:
    """Maintenance teams and the technicians that staff them"""

    def __init__(self, repository: MaintenanceRepository):
        self.repo = repository

    async def create_team(self, name: str) -> MaintenanceTeam:
        trimmed = (name or '').strip()
        if not trimmed:
            raise WorkflowValidationError("Team name is required")

        created_at = now_iso()
        team = await self.repo.create_team(MaintenanceTeam(
            name=trimmed,
            technician_ids=[],
            created_at=created_at,
            updated_at=created_at,
        ))
        logger.info(f"Created team {team.id} ({team.name})")
        return team

    async def get_team(self, team_id: str) -> MaintenanceTeam:
        team = await self.repo.get_team(team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def list_teams(self) -> List[MaintenanceTeam]:
        return await self.repo.list_teams()

    async def set_team_technicians(self, team_id: str, technician_ids: List[str]) -> MaintenanceTeam:
        """
        Replace the team's technician set.

        Ids are de-duplicated keeping first occurrence. Ids that do not match
        a technician are kept and logged; membership is advisory.
        """
        team = await self.get_team(team_id)

        members: List[str] = []
        for technician_id in technician_ids:
            technician_id = (technician_id or '').strip()
            if technician_id and technician_id not in members:
                members.append(technician_id)

        for technician_id in members:
            if await self.repo.get_technician(technician_id) is None:
                logger.warning(f"Team {team_id} references unknown technician {technician_id}")

        await self.repo.set_team_technicians(team.id, members)
        logger.info(f"Team {team.id} now has {len(members)} technician(s)")
        return team.model_copy(update={'technician_ids': members})

    async def create_technician(self, display_name: str, avatar_url: Optional[str] = None) -> Technician:
        trimmed = (display_name or '').strip()
        if not trimmed:
            raise WorkflowValidationError("Technician name is required")

        created_at = now_iso()
        technician = await self.repo.create_technician(Technician(
            display_name=trimmed,
            avatar_url=(avatar_url or '').strip() or None,
            created_at=created_at,
            updated_at=created_at,
        ))
        logger.info(f"Created technician {technician.id} ({technician.display_name})")
        return technician

    async def get_technician(self, technician_id: str) -> Technician:
        technician = await self.repo.get_technician(technician_id)
        if technician is None:
            raise NotFoundError("Technician not found")
        return technician

    async def list_technicians(self) -> List[Technician]:
        return await self.repo.list_technicians()
