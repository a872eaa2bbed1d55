from fastapi import Depends, HTTPException, Request

from .core.exceptions import GearGuardError
from .database.maintenance_repository import MaintenanceRepository
from .services.equipment_service import EquipmentService
from .services.maintenance_workflow import MaintenanceWorkflow
from .services.team_service import TeamService


def get_repository(request: Request) -> MaintenanceRepository:
    """Repository built at startup and attached to the app state"""
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=503, detail="Document store is not configured")
    return repository


def get_workflow(repository: MaintenanceRepository = Depends(get_repository)) -> MaintenanceWorkflow:
    return MaintenanceWorkflow(repository)


def get_equipment_service(repository: MaintenanceRepository = Depends(get_repository)) -> EquipmentService:
    return EquipmentService(repository)


def get_team_service(repository: MaintenanceRepository = Depends(get_repository)) -> TeamService:
    return TeamService(repository)


def http_error(error: GearGuardError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
