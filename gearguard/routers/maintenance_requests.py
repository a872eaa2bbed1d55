from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Any, Dict, Optional
import logging

from ..core.exceptions import GearGuardError
from ..dependencies import get_workflow, http_error
from ..models.database_models import (
    AssignTechnicianRequest,
    CreateMaintenanceRequest,
    RequestStatus,
    UpdateRequestStatus,
)
from ..services.maintenance_workflow import MaintenanceWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance-requests", tags=["Maintenance Requests"])


async def _reload(workflow: MaintenanceWorkflow, request_id: str) -> Optional[Dict[str, Any]]:
    # The write is already committed; a failed reload must not report the change as failed
    try:
        request = await workflow.get_request(request_id)
        return request.model_dump(by_alias=True)
    except GearGuardError as e:
        logger.warning(f"Request {request_id} was updated but could not be reloaded: {e.message}")
        return None


@router.post("/", response_model=Dict[str, Any])
async def create_request(
    payload: CreateMaintenanceRequest,
    workflow: MaintenanceWorkflow = Depends(get_workflow),
):
    """Open a maintenance request; team and technician default from the equipment"""
    try:
        created = await workflow.create_request(
            request_type=payload.type,
            subject=payload.subject,
            equipment_id=payload.equipment_id,
            description=payload.description,
            technician_id=payload.technician_id,
            scheduled_at=payload.scheduled_at,
        )
        return {
            "success": True,
            "message": "Maintenance request created",
            "request_id": created.id,
            "data": created.model_dump(by_alias=True),
        }
    except GearGuardError as e:
        logger.info(f"Request creation rejected: {e.message}")
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error creating maintenance request: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/", response_model=Dict[str, Any])
async def list_requests(
    status: Optional[RequestStatus] = Query(None, description="Only requests in this status"),
    equipment_id: Optional[str] = Query(None, description="With status: only requests for this equipment"),
    open_only: bool = Query(False, description="Only new and in-progress requests"),
    preventive: bool = Query(False, description="Preventive requests ordered by scheduled date"),
    workflow: MaintenanceWorkflow = Depends(get_workflow),
):
    try:
        requests = await workflow.list_requests(
            status=status.value if status else None,
            equipment_id=equipment_id,
            open_only=open_only,
            preventive=preventive,
        )
        return {"success": True, "data": [r.model_dump(by_alias=True) for r in requests], "count": len(requests)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing maintenance requests: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{request_id}", response_model=Dict[str, Any])
async def get_request(request_id: str, workflow: MaintenanceWorkflow = Depends(get_workflow)):
    try:
        request = await workflow.get_request(request_id)
        return {"success": True, "data": request.model_dump(by_alias=True)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching maintenance request {request_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{request_id}/status", response_model=Dict[str, Any])
async def update_status(
    request_id: str,
    payload: UpdateRequestStatus,
    workflow: MaintenanceWorkflow = Depends(get_workflow),
):
    """Move a request through the status workflow"""
    try:
        await workflow.update_status(
            request_id,
            payload.next_status,
            technician_id=payload.technician_id,
            duration_hours=payload.duration_hours,
        )
        return {
            "success": True,
            "message": f"Status updated to {payload.next_status}",
            "data": await _reload(workflow, request_id),
        }
    except GearGuardError as e:
        logger.info(f"Status update for {request_id} rejected: {e.message}")
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error updating status of maintenance request {request_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/{request_id}/technician", response_model=Dict[str, Any])
async def assign_technician(
    request_id: str,
    payload: AssignTechnicianRequest,
    workflow: MaintenanceWorkflow = Depends(get_workflow),
):
    try:
        await workflow.assign_technician(request_id, payload.technician_id)
        return {"success": True, "message": "Technician assigned", "data": await _reload(workflow, request_id)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error assigning technician on maintenance request {request_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
