import copy

import pytest

from gearguard.database.collections import COLLECTIONS
from gearguard.database.maintenance_repository import FirestoreMaintenanceRepository
from gearguard.services.maintenance_workflow import MaintenanceWorkflow

SEED_TS = "2024-01-01T00:00:00.000Z"


class FakeDB:
    """In-memory stand-in for DatabaseService with the same tuple-returning API"""

    def __init__(self):
        # storage keyed by collection -> id -> doc
        self.storage = {}
        # (method, collection) -> error message returned instead of doing the operation
        self.failures = {}
        self.calls = []

    def fail(self, method: str, collection: str, error: str):
        self.failures[(method, collection)] = error

    def _failure(self, method, collection):
        self.calls.append((method, collection))
        return self.failures.get((method, collection))

    async def get_document(self, collection, document_id, timeout=None):
        error = self._failure("get_document", collection)
        if error:
            return False, None, error
        doc = self.storage.get(collection, {}).get(document_id)
        if doc is None:
            return True, None, None
        return True, {**copy.deepcopy(doc), "id": document_id}, None

    async def query_documents(self, collection, filters=None, order_by=None, limit=None):
        error = self._failure("query_documents", collection)
        if error:
            return False, [], error
        docs = [{**copy.deepcopy(d), "id": doc_id} for doc_id, d in self.storage.get(collection, {}).items()]
        for field, op, value in filters or []:
            if op == "==":
                docs = [d for d in docs if d.get(field) == value]
            elif op == "in":
                docs = [d for d in docs if d.get(field) in value]
            else:
                raise ValueError(f"unsupported operator {op}")
        for field, direction in reversed(list(order_by or [])):
            docs.sort(key=lambda d: (d.get(field) is None, d.get(field) or ""), reverse=direction == "desc")
        if limit:
            docs = docs[:limit]
        return True, docs, None

    async def create_document(self, collection, data, document_id=None, validate=True):
        error = self._failure("create_document", collection)
        if error:
            return False, None, error
        coll = self.storage.setdefault(collection, {})
        doc_id = document_id or f"{collection}_{len(coll) + 1}"
        coll[doc_id] = copy.deepcopy({k: v for k, v in data.items() if k != "id"})
        return True, doc_id, None

    async def update_document(self, collection, document_id, data, validate=False):
        error = self._failure("update_document", collection)
        if error:
            return False, error
        coll = self.storage.setdefault(collection, {})
        coll.setdefault(document_id, {}).update(copy.deepcopy(data))
        return True, None

    def put(self, collection_key, document_id, data):
        doc = {"createdAt": SEED_TS, "updatedAt": SEED_TS, **data}
        self.storage.setdefault(COLLECTIONS[collection_key], {})[document_id] = doc

    def doc(self, collection_key, document_id):
        return self.storage.get(COLLECTIONS[collection_key], {}).get(document_id)


@pytest.fixture
def fake_db():
    db = FakeDB()
    db.put("technicians", "tech1", {"displayName": "Alice"})
    db.put("technicians", "tech2", {"displayName": "Bob"})
    db.put("technicians", "techX", {"displayName": "Xavier"})
    db.put("teams", "team1", {"name": "IT", "technicianIds": ["tech1"]})
    db.put("teams", "team2", {"name": "Mechanical", "technicianIds": ["tech2"]})
    base_equipment = {
        "serialNumber": "XPS-001",
        "category": "Computers",
        "location": "HQ - Floor 3",
        "ownerType": "employee",
        "ownerName": "John Smith",
        "status": "active",
    }
    db.put("equipment", "eq1", {**base_equipment, "name": "Laptop",
                                "defaultTeamId": "team1", "defaultTechnicianId": "tech1"})
    db.put("equipment", "eq2", {**base_equipment, "name": "Laptop 2",
                                "defaultTeamId": "team1", "defaultTechnicianId": "tech1"})
    db.put("equipment", "eq_no_team", {**base_equipment, "name": "Orphan printer",
                                       "defaultTeamId": None, "defaultTechnicianId": "tech1"})
    db.put("equipment", "eq_blank_team", {**base_equipment, "name": "Blank team",
                                          "defaultTeamId": "  ", "defaultTechnicianId": None})
    db.put("equipment", "eq_no_tech", {**base_equipment, "name": "Forklift", "category": None,
                                       "defaultTeamId": "team1", "defaultTechnicianId": None})
    db.put("equipment", "eq_ghost_team", {**base_equipment, "name": "Ghost",
                                          "defaultTeamId": "team_missing", "defaultTechnicianId": "tech1"})
    return db


@pytest.fixture
def repository(fake_db):
    return FirestoreMaintenanceRepository(fake_db)


@pytest.fixture
def workflow(repository):
    return MaintenanceWorkflow(repository)
