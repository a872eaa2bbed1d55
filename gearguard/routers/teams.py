from fastapi import APIRouter, Depends, HTTPException
from typing import Any, Dict
import logging

from ..core.exceptions import GearGuardError
from ..dependencies import get_team_service, http_error
from ..models.database_models import CreateTeamRequest, CreateTechnicianRequest, SetTeamTechniciansRequest
from ..services.team_service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Teams & Technicians"])


@router.get("/teams/", response_model=Dict[str, Any])
async def list_teams(team_service: TeamService = Depends(get_team_service)):
    try:
        teams = await team_service.list_teams()
        return {"success": True, "data": [t.model_dump(by_alias=True) for t in teams], "count": len(teams)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing teams: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/teams/", response_model=Dict[str, Any])
async def create_team(payload: CreateTeamRequest, team_service: TeamService = Depends(get_team_service)):
    try:
        team = await team_service.create_team(payload.name)
        return {"success": True, "message": "Team created", "data": team.model_dump(by_alias=True)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating team: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/teams/{team_id}/technicians", response_model=Dict[str, Any])
async def set_team_technicians(
    team_id: str,
    payload: SetTeamTechniciansRequest,
    team_service: TeamService = Depends(get_team_service),
):
    """Replace the technicians of a team"""
    try:
        team = await team_service.set_team_technicians(team_id, payload.technician_ids)
        return {"success": True, "message": "Team members updated", "data": team.model_dump(by_alias=True)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating members of team {team_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/technicians/", response_model=Dict[str, Any])
async def list_technicians(team_service: TeamService = Depends(get_team_service)):
    try:
        technicians = await team_service.list_technicians()
        return {
            "success": True,
            "data": [t.model_dump(by_alias=True) for t in technicians],
            "count": len(technicians),
        }
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing technicians: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/technicians/", response_model=Dict[str, Any])
async def create_technician(
    payload: CreateTechnicianRequest,
    team_service: TeamService = Depends(get_team_service),
):
    try:
        technician = await team_service.create_technician(payload.display_name, payload.avatar_url)
        return {"success": True, "message": "Technician created", "data": technician.model_dump(by_alias=True)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating technician: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
