from fastapi import APIRouter, Depends, HTTPException, Path
from typing import Any, Dict
import logging

from ..core.exceptions import GearGuardError
from ..dependencies import get_equipment_service, http_error
from ..models.database_models import CreateEquipmentRequest
from ..services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/equipment",
    tags=["Equipment Registry"],
    responses={404: {"description": "Not found"}}
)


@router.post("/", response_model=Dict[str, Any])
async def create_equipment(
    payload: CreateEquipmentRequest,
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    """Register equipment with its default team and technician"""
    try:
        equipment = await equipment_service.create_equipment(payload)
        return {
            "success": True,
            "message": "Equipment created",
            "equipment_id": equipment.id,
            "data": equipment.model_dump(by_alias=True),
        }
    except GearGuardError as e:
        raise http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating equipment: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/", response_model=Dict[str, Any])
async def list_equipment(equipment_service: EquipmentService = Depends(get_equipment_service)):
    try:
        items = await equipment_service.list_equipment()
        return {"success": True, "data": [e.model_dump(by_alias=True) for e in items], "count": len(items)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error listing equipment: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{equipment_id}", response_model=Dict[str, Any])
async def get_equipment(
    equipment_id: str = Path(..., description="Equipment document ID"),
    equipment_service: EquipmentService = Depends(get_equipment_service),
):
    try:
        equipment = await equipment_service.get_equipment(equipment_id)
        return {"success": True, "data": equipment.model_dump(by_alias=True)}
    except GearGuardError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Error fetching equipment {equipment_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
