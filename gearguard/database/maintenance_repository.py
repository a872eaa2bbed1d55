from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ..core.config import settings
from ..core.exceptions import StoreOperationError, StoreUnavailableError
from ..core.timestamps import now_iso
from ..models.database_models import (
    Equipment,
    EquipmentStatus,
    MaintenanceRequest,
    MaintenanceTeam,
    RequestStatus,
    RequestType,
    Technician,
)
from .collections import COLLECTIONS
from .database_service import DatabaseService

logger = logging.getLogger(__name__)

# Substrings reported by the Firestore client when the backend cannot be reached
_UNREACHABLE_MARKERS = (
    'unavailable',
    'not available',
    'failed to connect',
    'connection refused',
    'network',
    'timed out',
    'deadline',
    'offline',
)


def enhance_db_error(label: str, error: Optional[str]) -> StoreOperationError:
    """Classify a store failure as a connectivity problem or a plain store error."""
    message = error or 'unknown error'
    lower = message.lower()

    if not any(marker in lower for marker in _UNREACHABLE_MARKERS):
        return StoreOperationError(f"{label} failed: {message}")

    return StoreUnavailableError(
        f"{label} failed: database is unreachable.\n"
        "- If you're using the emulator: start the Firestore emulator (default 127.0.0.1:8080) "
        "and set FIRESTORE_EMULATOR_HOST.\n"
        "- If you're using a real Firebase project: set FIREBASE_SERVICE_ACCOUNT_JSON or "
        "FIREBASE_SERVICE_ACCOUNT_PATH and FIREBASE_PROJECT_ID."
    )


class MaintenanceRepository(ABC):
    """Data access for the maintenance workflow, independent of the backing store."""

    # Equipment
    @abstractmethod
    async def get_equipment(self, equipment_id: str) -> Optional[Equipment]: ...

    @abstractmethod
    async def list_equipment(self) -> List[Equipment]: ...

    @abstractmethod
    async def create_equipment(self, equipment: Equipment) -> Equipment: ...

    @abstractmethod
    async def mark_equipment_scrapped(self, equipment_id: str) -> None: ...

    # Teams
    @abstractmethod
    async def get_team(self, team_id: str) -> Optional[MaintenanceTeam]: ...

    @abstractmethod
    async def list_teams(self) -> List[MaintenanceTeam]: ...

    @abstractmethod
    async def create_team(self, team: MaintenanceTeam) -> MaintenanceTeam: ...

    @abstractmethod
    async def set_team_technicians(self, team_id: str, technician_ids: List[str]) -> None: ...

    # Technicians
    @abstractmethod
    async def get_technician(self, technician_id: str) -> Optional[Technician]: ...

    @abstractmethod
    async def list_technicians(self) -> List[Technician]: ...

    @abstractmethod
    async def create_technician(self, technician: Technician) -> Technician: ...

    # Maintenance requests
    @abstractmethod
    async def get_request(self, request_id: str) -> Optional[MaintenanceRequest]: ...

    @abstractmethod
    async def create_request(self, request: MaintenanceRequest) -> MaintenanceRequest: ...

    @abstractmethod
    async def update_request(self, request_id: str, patch: Dict[str, Any]) -> None:
        """Merge snake_case fields into the request and bump updatedAt."""

    @abstractmethod
    async def list_requests_by_status(self, status: str,
                                      equipment_id: Optional[str] = None) -> List[MaintenanceRequest]: ...

    @abstractmethod
    async def list_preventive_requests(self) -> List[MaintenanceRequest]: ...

    @abstractmethod
    async def list_open_requests(self) -> List[MaintenanceRequest]: ...

    @abstractmethod
    async def list_all_requests(self) -> List[MaintenanceRequest]: ...


class FirestoreMaintenanceRepository(MaintenanceRepository):
    """MaintenanceRepository backed by Firestore collections through DatabaseService."""

    def __init__(self, db: DatabaseService, lookup_timeout: Optional[float] = None):
        self.db = db
        self.lookup_timeout = lookup_timeout if lookup_timeout is not None else settings.STORE_LOOKUP_TIMEOUT_SECONDS

    async def _get(self, collection_key: str, document_id: str, label: str) -> Optional[Dict[str, Any]]:
        success, doc, error = await self.db.get_document(
            COLLECTIONS[collection_key], document_id, timeout=self.lookup_timeout
        )
        if not success:
            raise enhance_db_error(label, error)
        return doc

    async def _query(self, collection_key: str, label: str, filters=None, order_by=None,
                     limit: Optional[int] = None) -> List[Dict[str, Any]]:
        success, docs, error = await self.db.query_documents(
            COLLECTIONS[collection_key], filters=filters, order_by=order_by, limit=limit
        )
        if not success:
            raise enhance_db_error(label, error)
        return docs

    async def _create(self, collection_key: str, data: Dict[str, Any], label: str) -> str:
        success, doc_id, error = await self.db.create_document(COLLECTIONS[collection_key], data)
        if not success:
            raise enhance_db_error(label, error)
        return doc_id

    async def _merge(self, collection_key: str, document_id: str, data: Dict[str, Any], label: str) -> None:
        success, error = await self.db.update_document(COLLECTIONS[collection_key], document_id, data)
        if not success:
            raise enhance_db_error(label, error)

    @staticmethod
    def _parse(model, doc: Dict[str, Any], label: str):
        """Build a model from a stored document; malformed documents become store errors."""
        try:
            return model.model_validate(doc)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            logger.error(f"{label}: stored document {doc.get('id')} is malformed: {problems}")
            raise StoreOperationError(f"{label} failed: document {doc.get('id')} has invalid data ({problems})")

    # ===== Equipment =====

    async def get_equipment(self, equipment_id: str) -> Optional[Equipment]:
        doc = await self._get('equipment', equipment_id, 'Load equipment')
        return self._parse(Equipment, doc, 'Load equipment') if doc else None

    async def list_equipment(self) -> List[Equipment]:
        docs = await self._query('equipment', 'Load equipment', order_by=[('name', 'asc')], limit=100)
        return [self._parse(Equipment, d, 'Load equipment') for d in docs]

    async def create_equipment(self, equipment: Equipment) -> Equipment:
        doc_id = await self._create('equipment', equipment.to_document(), 'Create equipment')
        return equipment.model_copy(update={'id': doc_id})

    async def mark_equipment_scrapped(self, equipment_id: str) -> None:
        await self._merge(
            'equipment',
            equipment_id,
            {'status': EquipmentStatus.SCRAPPED.value, 'updatedAt': now_iso()},
            'Scrap equipment',
        )

    # ===== Teams =====

    async def get_team(self, team_id: str) -> Optional[MaintenanceTeam]:
        doc = await self._get('teams', team_id, 'Load team')
        return self._parse(MaintenanceTeam, doc, 'Load team') if doc else None

    async def list_teams(self) -> List[MaintenanceTeam]:
        docs = await self._query('teams', 'Load teams', order_by=[('name', 'asc')], limit=100)
        return [self._parse(MaintenanceTeam, d, 'Load teams') for d in docs]

    async def create_team(self, team: MaintenanceTeam) -> MaintenanceTeam:
        doc_id = await self._create('teams', team.to_document(), 'Create team')
        return team.model_copy(update={'id': doc_id})

    async def set_team_technicians(self, team_id: str, technician_ids: List[str]) -> None:
        await self._merge(
            'teams',
            team_id,
            {'technicianIds': list(technician_ids), 'updatedAt': now_iso()},
            'Update team members',
        )

    # ===== Technicians =====

    async def get_technician(self, technician_id: str) -> Optional[Technician]:
        doc = await self._get('technicians', technician_id, 'Load technician')
        return self._parse(Technician, doc, 'Load technician') if doc else None

    async def list_technicians(self) -> List[Technician]:
        docs = await self._query('technicians', 'Load technicians', order_by=[('displayName', 'asc')], limit=200)
        return [self._parse(Technician, d, 'Load technicians') for d in docs]

    async def create_technician(self, technician: Technician) -> Technician:
        doc_id = await self._create('technicians', technician.to_document(), 'Create technician')
        return technician.model_copy(update={'id': doc_id})

    # ===== Maintenance requests =====

    async def get_request(self, request_id: str) -> Optional[MaintenanceRequest]:
        doc = await self._get('maintenance_requests', request_id, 'Load request')
        return self._parse(MaintenanceRequest, doc, 'Load request') if doc else None

    async def create_request(self, request: MaintenanceRequest) -> MaintenanceRequest:
        doc_id = await self._create('maintenance_requests', request.to_document(), 'Create request')
        return request.model_copy(update={'id': doc_id})

    async def update_request(self, request_id: str, patch: Dict[str, Any]) -> None:
        data = {to_camel(key): value for key, value in patch.items()}
        data['updatedAt'] = now_iso()
        await self._merge('maintenance_requests', request_id, data, 'Update request')

    async def list_requests_by_status(self, status: str,
                                      equipment_id: Optional[str] = None) -> List[MaintenanceRequest]:
        filters = [('status', '==', status)]
        if equipment_id:
            filters.append(('equipmentId', '==', equipment_id))
        docs = await self._query(
            'maintenance_requests', 'Load requests',
            filters=filters, order_by=[('updatedAt', 'desc')], limit=200,
        )
        return [self._parse(MaintenanceRequest, d, 'Load requests') for d in docs]

    async def list_preventive_requests(self) -> List[MaintenanceRequest]:
        docs = await self._query(
            'maintenance_requests', 'Load preventive requests',
            filters=[('type', '==', RequestType.PREVENTIVE.value)],
            order_by=[('scheduledAt', 'asc')], limit=200,
        )
        return [self._parse(MaintenanceRequest, d, 'Load preventive requests') for d in docs]

    async def list_open_requests(self) -> List[MaintenanceRequest]:
        docs = await self._query(
            'maintenance_requests', 'Load open requests',
            filters=[('status', 'in', [RequestStatus.NEW.value, RequestStatus.IN_PROGRESS.value])],
            limit=500,
        )
        return [self._parse(MaintenanceRequest, d, 'Load open requests') for d in docs]

    async def list_all_requests(self) -> List[MaintenanceRequest]:
        docs = await self._query(
            'maintenance_requests', 'Load all requests', order_by=[('updatedAt', 'desc')], limit=500,
        )
        return [self._parse(MaintenanceRequest, d, 'Load all requests') for d in docs]
