import itertools

import pytest

from gearguard.core.exceptions import (
    InvalidStatusTransitionError,
    NotFoundError,
    StoreOperationError,
    StoreUnavailableError,
    TechnicianNotInTeamError,
    WorkflowValidationError,
)

pytestmark = pytest.mark.asyncio

STATUSES = ["new", "in_progress", "repaired", "scrap"]
TABLE = {
    ("new", "in_progress"),
    ("new", "scrap"),
    ("in_progress", "repaired"),
    ("in_progress", "scrap"),
}


def request_doc(fake_db, request_id):
    return fake_db.storage["maintenanceRequests"][request_id]


# ===== Request creation =====

async def test_scenario_a_create_uses_equipment_defaults(workflow, fake_db):
    created = await workflow.create_request("corrective", "Overheating", "eq1")

    assert created.id
    assert created.status == "new"
    assert created.team_id == "team1"
    assert created.technician_id == "tech1"
    assert created.duration_hours is None
    assert created.equipment_category == "Computers"
    assert created.created_at == created.updated_at

    stored = request_doc(fake_db, created.id)
    assert stored["status"] == "new"
    assert stored["teamId"] == "team1"
    assert stored["technicianId"] == "tech1"
    assert stored["equipmentId"] == "eq1"


@pytest.mark.parametrize("equipment_id", ["eq_no_team", "eq_blank_team"])
@pytest.mark.parametrize("technician_id", [None, "tech1", "techX"])
async def test_create_without_default_team_fails(workflow, fake_db, equipment_id, technician_id):
    with pytest.raises(WorkflowValidationError) as exc:
        await workflow.create_request("preventive", "Check", equipment_id, technician_id=technician_id)

    assert exc.value.message == "Equipment has no default maintenance team"
    assert "maintenanceRequests" not in fake_db.storage


async def test_create_unknown_equipment_fails(workflow):
    with pytest.raises(NotFoundError) as exc:
        await workflow.create_request("corrective", "Broken", "eq_missing")
    assert exc.value.message == "Equipment not found"
    assert exc.value.status_code == 404


async def test_create_with_missing_team_fails(workflow):
    with pytest.raises(NotFoundError) as exc:
        await workflow.create_request("corrective", "Broken", "eq_ghost_team")
    assert exc.value.message == "Default maintenance team not found"


async def test_create_with_technician_outside_team_fails(workflow, fake_db):
    with pytest.raises(TechnicianNotInTeamError) as exc:
        await workflow.create_request("corrective", "Broken", "eq1", technician_id="tech2")
    assert exc.value.message == "Technician is not a member of the assigned team"
    assert "maintenanceRequests" not in fake_db.storage


async def test_create_without_any_technician_is_unassigned(workflow, fake_db):
    created = await workflow.create_request(
        "preventive", "Quarterly check", "eq_no_tech", scheduled_at="2024-06-01T09:00:00.000Z"
    )

    assert created.technician_id is None
    assert created.scheduled_at == "2024-06-01T09:00:00.000Z"
    assert created.equipment_category == "Uncategorized"
    assert request_doc(fake_db, created.id)["technicianId"] is None


async def test_create_supplied_technician_overrides_default(workflow, fake_db):
    fake_db.storage["maintenanceTeams"]["team1"]["technicianIds"] = ["tech1", "tech2"]

    created = await workflow.create_request("corrective", "Noise", "eq1", technician_id="tech2")

    assert created.technician_id == "tech2"


async def test_create_rejects_unknown_type(workflow):
    with pytest.raises(WorkflowValidationError) as exc:
        await workflow.create_request("emergency", "Fire", "eq1")
    assert exc.value.message == "Invalid request type: emergency"


# ===== Status transitions =====

async def test_scenario_b_full_repair_cycle(workflow, fake_db):
    created = await workflow.create_request("corrective", "Overheating", "eq1")

    await workflow.update_status(created.id, "in_progress")
    assert (await workflow.get_request(created.id)).status == "in_progress"

    await workflow.update_status(created.id, "repaired", duration_hours=1.5)
    repaired = await workflow.get_request(created.id)
    assert repaired.status == "repaired"
    assert repaired.duration_hours == 1.5

    with pytest.raises(InvalidStatusTransitionError) as exc:
        await workflow.update_status(created.id, "scrap")
    assert exc.value.message == "Invalid status transition: repaired -> scrap"
    assert fake_db.doc("equipment", "eq1")["status"] == "active"


async def test_scenario_c_scrap_from_new_scraps_equipment(workflow, fake_db):
    created = await workflow.create_request("corrective", "Dropped", "eq2")

    await workflow.update_status(created.id, "scrap")

    assert (await workflow.get_request(created.id)).status == "scrap"
    equipment = await workflow.repo.get_equipment("eq2")
    assert equipment.status == "scrapped"
    assert equipment.updated_at != "2024-01-01T00:00:00.000Z"


async def test_scenario_d_non_member_cannot_start(workflow, fake_db):
    created = await workflow.create_request("corrective", "Overheating", "eq1")

    with pytest.raises(TechnicianNotInTeamError):
        await workflow.update_status(created.id, "in_progress", technician_id="techX")

    assert request_doc(fake_db, created.id)["status"] == "new"
    assert request_doc(fake_db, created.id)["technicianId"] == "tech1"


async def test_scenario_e_repaired_requires_duration(workflow, fake_db):
    created = await workflow.create_request("corrective", "Overheating", "eq1")
    await workflow.update_status(created.id, "in_progress")

    with pytest.raises(WorkflowValidationError) as exc:
        await workflow.update_status(created.id, "repaired")

    assert exc.value.message == "Duration hours is required"
    assert request_doc(fake_db, created.id)["status"] == "in_progress"


@pytest.mark.parametrize("duration", [-0.5, float("nan"), True, "2"])
async def test_repaired_rejects_invalid_duration(workflow, fake_db, duration):
    created = await workflow.create_request("corrective", "Overheating", "eq1")
    await workflow.update_status(created.id, "in_progress")

    with pytest.raises(WorkflowValidationError):
        await workflow.update_status(created.id, "repaired", duration_hours=duration)


async def test_repaired_accepts_zero_duration(workflow):
    created = await workflow.create_request("corrective", "Reboot", "eq1")
    await workflow.update_status(created.id, "in_progress")

    await workflow.update_status(created.id, "repaired", duration_hours=0)

    assert (await workflow.get_request(created.id)).duration_hours == 0


async def test_start_requires_a_technician(workflow, fake_db):
    created = await workflow.create_request("preventive", "Inspection", "eq_no_tech")

    with pytest.raises(WorkflowValidationError) as exc:
        await workflow.update_status(created.id, "in_progress")

    assert exc.value.message == "Technician must be assigned to move to In Progress"
    assert request_doc(fake_db, created.id)["status"] == "new"


async def test_start_with_supplied_technician_persists_it(workflow, fake_db):
    created = await workflow.create_request("preventive", "Inspection", "eq_no_tech")

    await workflow.update_status(created.id, "in_progress", technician_id="tech1")

    stored = request_doc(fake_db, created.id)
    assert stored["status"] == "in_progress"
    assert stored["technicianId"] == "tech1"
    assert stored["updatedAt"] >= stored["createdAt"]


async def test_start_rechecks_current_team_membership(workflow, fake_db):
    created = await workflow.create_request("corrective", "Overheating", "eq1")
    # membership drifted after creation
    fake_db.storage["maintenanceTeams"]["team1"]["technicianIds"] = []

    with pytest.raises(TechnicianNotInTeamError):
        await workflow.update_status(created.id, "in_progress")


async def test_update_unknown_request_fails(workflow):
    with pytest.raises(NotFoundError) as exc:
        await workflow.update_status("req_missing", "in_progress")
    assert exc.value.message == "Request not found"


@pytest.mark.parametrize("current,next_status", list(itertools.product(STATUSES, STATUSES)))
async def test_transition_table_is_total(workflow, fake_db, current, next_status):
    created = await workflow.create_request("corrective", "Overheating", "eq1")
    request_doc(fake_db, created.id)["status"] = current

    if (current, next_status) in TABLE:
        await workflow.update_status(created.id, next_status, technician_id="tech1", duration_hours=2)
        assert request_doc(fake_db, created.id)["status"] == next_status
    else:
        with pytest.raises(InvalidStatusTransitionError) as exc:
            await workflow.update_status(created.id, next_status, technician_id="tech1", duration_hours=2)
        assert exc.value.message == f"Invalid status transition: {current} -> {next_status}"
        assert request_doc(fake_db, created.id)["status"] == current


async def test_unknown_next_status_is_invalid_transition(workflow):
    created = await workflow.create_request("corrective", "Overheating", "eq1")

    with pytest.raises(InvalidStatusTransitionError) as exc:
        await workflow.update_status(created.id, "done")
    assert exc.value.message == "Invalid status transition: new -> done"


# ===== Scrap is two writes without rollback =====

async def test_scrap_equipment_write_failure_leaves_request_scrapped(workflow, fake_db):
    created = await workflow.create_request("corrective", "Dropped", "eq2")
    fake_db.fail("update_document", "equipment", "503 Service Unavailable")

    with pytest.raises(StoreUnavailableError):
        await workflow.update_status(created.id, "scrap")

    # request write landed, equipment write did not
    assert request_doc(fake_db, created.id)["status"] == "scrap"
    assert fake_db.doc("equipment", "eq2")["status"] == "active"


async def test_scrap_writes_request_before_equipment(workflow, fake_db):
    created = await workflow.create_request("corrective", "Dropped", "eq2")
    fake_db.calls.clear()

    await workflow.update_status(created.id, "scrap")

    updates = [c for c in fake_db.calls if c[0] == "update_document"]
    assert updates == [("update_document", "maintenanceRequests"), ("update_document", "equipment")]


# ===== Technician assignment =====

async def test_assign_technician_member(workflow, fake_db):
    created = await workflow.create_request("preventive", "Inspection", "eq_no_tech")

    await workflow.assign_technician(created.id, "tech1")

    stored = request_doc(fake_db, created.id)
    assert stored["technicianId"] == "tech1"
    assert stored["status"] == "new"


async def test_assign_technician_non_member_fails(workflow, fake_db):
    created = await workflow.create_request("corrective", "Overheating", "eq1")

    with pytest.raises(TechnicianNotInTeamError):
        await workflow.assign_technician(created.id, "tech2")
    assert request_doc(fake_db, created.id)["technicianId"] == "tech1"


# ===== Reads =====

async def test_reading_twice_returns_identical_values(workflow):
    created = await workflow.create_request("corrective", "Overheating", "eq1")

    first = await workflow.get_request(created.id)
    second = await workflow.get_request(created.id)

    assert first.model_dump() == second.model_dump()


async def test_list_requests_queries(workflow, fake_db):
    a = await workflow.create_request("corrective", "A", "eq1")
    b = await workflow.create_request("preventive", "B", "eq2", scheduled_at="2024-05-02")
    c = await workflow.create_request("preventive", "C", "eq1", scheduled_at="2024-05-01")
    await workflow.update_status(a.id, "in_progress")
    await workflow.update_status(b.id, "scrap")

    open_ids = {r.id for r in await workflow.list_requests(open_only=True)}
    assert open_ids == {a.id, c.id}

    preventive = await workflow.list_requests(preventive=True)
    assert [r.id for r in preventive] == [c.id, b.id]

    new_for_eq1 = await workflow.list_requests(status="new", equipment_id="eq1")
    assert [r.id for r in new_for_eq1] == [c.id]

    assert len(await workflow.list_requests()) == 3


async def test_store_failure_on_read_is_connectivity_error(workflow, fake_db):
    fake_db.fail("get_document", "equipment", "Load equipment/eq1 timed out. Database not reachable.")

    with pytest.raises(StoreUnavailableError) as exc:
        await workflow.create_request("corrective", "Overheating", "eq1")

    assert exc.value.status_code == 503
    assert "database is unreachable" in exc.value.message


async def test_other_store_failure_is_not_connectivity(workflow, fake_db):
    fake_db.fail("create_document", "maintenanceRequests", "Permission denied")

    with pytest.raises(StoreOperationError) as exc:
        await workflow.create_request("corrective", "Overheating", "eq1")

    assert not isinstance(exc.value, StoreUnavailableError)
    assert exc.value.message == "Create request failed: Permission denied"


async def test_equipment_filter_requires_status(workflow):
    await workflow.create_request("corrective", "A", "eq1")

    with pytest.raises(WorkflowValidationError) as exc:
        await workflow.list_requests(equipment_id="eq1")

    assert exc.value.message == "Equipment filter requires a status"


async def test_malformed_stored_request_is_store_error(workflow, fake_db):
    fake_db.put("maintenance_requests", "req_bad", {"subject": "Old import", "status": "archived"})

    with pytest.raises(StoreOperationError) as exc:
        await workflow.get_request("req_bad")

    assert exc.value.status_code == 502
    assert exc.value.message.startswith("Load request failed: document req_bad has invalid data")

    with pytest.raises(StoreOperationError):
        await workflow.list_requests()
