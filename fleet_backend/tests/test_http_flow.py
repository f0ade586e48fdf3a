"""
End-to-end tests through the ASGI app: gate, envelope and error mapping.
"""

import pytest

from fleet_backend.app.core.config import settings
from fleet_backend.app.main import app
from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.tests.helpers import auth, token_for


async def test_health_is_public(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["redis"] == "ok"


async def test_anonymous_request_redirects_to_login(client):
    response = await client.get("/v1/vehicles")
    assert response.status_code == 303
    assert response.headers["location"] == settings.login_url


async def test_garbage_token_redirects_to_login(client):
    response = await client.get("/v1/vehicles", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 303
    assert response.headers["location"] == settings.login_url


async def test_session_cookie_is_accepted(client, make_user):
    driver = await make_user(UserRole.DRIVER)
    client.cookies.set(settings.session_cookie_name, token_for(driver))
    response = await client.get("/v1/profile")
    assert response.status_code == 200
    assert response.json()["data"]["id"] == driver.id


@pytest.mark.parametrize("role, path, allowed", [
    (UserRole.DRIVER, "/v1/dashboard", True),
    (UserRole.DRIVER, "/v1/drivers", False),
    (UserRole.DRIVER, "/v1/users", False),
    (UserRole.MANAGER, "/v1/drivers", True),
    (UserRole.MANAGER, "/v1/users", False),
    (UserRole.ADMIN, "/v1/users", True),
    (UserRole.ADMIN, "/v1/audit", False),
    (UserRole.SUPER_ADMIN, "/v1/audit", True),
])
async def test_gate_over_http(client, make_user, role, path, allowed):
    user = await make_user(role)
    response = await client.get(path, headers=auth(user))
    if allowed:
        assert response.status_code == 200
        assert response.json()["success"] is True
    else:
        assert response.status_code == 303
        assert response.headers["location"] == settings.landing_url
        assert response.headers["x-gate-reason"] == "route_not_permitted"


async def test_driver_vehicle_list_is_scoped(client, make_user, make_vehicle, assign):
    manager = await make_user(UserRole.MANAGER)
    driver = await make_user(UserRole.DRIVER)
    vehicles = [await make_vehicle(p) for p in ("V-1", "V-2", "V-3")]
    await assign(vehicles[0], driver, manager)

    driver_list = (await client.get("/v1/vehicles", headers=auth(driver))).json()["data"]
    assert [v["plate"] for v in driver_list] == ["V-1"]

    manager_list = (await client.get("/v1/vehicles", headers=auth(manager))).json()["data"]
    assert len(manager_list) == 3


async def test_driver_naming_other_driver_is_redirected(client, make_user):
    driver = await make_user(UserRole.DRIVER)
    other = await make_user(UserRole.DRIVER)

    response = await client.get(f"/v1/vehicles?driver_id={other.id}", headers=auth(driver))
    assert response.status_code == 303
    assert response.headers["x-gate-reason"] == "cross_actor_access"

    response = await client.get(f"/v1/profile?user_id={other.id}", headers=auth(driver))
    assert response.status_code == 303


async def test_manager_reads_other_profile(client, make_user):
    manager = await make_user(UserRole.MANAGER)
    driver = await make_user(UserRole.DRIVER)
    response = await client.get(f"/v1/profile?user_id={driver.id}", headers=auth(manager))
    assert response.status_code == 200
    assert response.json()["data"]["username"] == driver.username


async def test_create_vehicle_normalizes_plate(client, make_user):
    manager = await make_user(UserRole.MANAGER)
    response = await client.post("/v1/vehicles", json={"plate": "abc123", "model": "Ducato"}, headers=auth(manager))
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["plate"] == "ABC123"

    vehicle_id = body["data"]["id"]
    detail = await client.get(f"/v1/vehicles/{vehicle_id}", headers=auth(manager))
    assert detail.json()["data"]["plate"] == "ABC123"


@pytest.mark.parametrize("plate", ["   ", " \t "])
async def test_blank_plate_is_validation_error(client, make_user, make_vehicle, plate):
    manager = await make_user(UserRole.MANAGER)
    response = await client.post("/v1/vehicles", json={"plate": plate, "model": "Ducato"}, headers=auth(manager))
    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["error_code"] == "ERR_VALIDATION"

    vehicle = await make_vehicle("BLANK-1")
    response = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"plate": plate}, headers=auth(manager))
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


async def test_driver_write_is_permission_denied(client, make_user):
    driver = await make_user(UserRole.DRIVER)
    response = await client.post("/v1/vehicles", json={"plate": "D-1", "model": "Ducato"}, headers=auth(driver))
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "error": "Unauthorized: Cannot create vehicles",
        "error_code": "ERR_PERM_001",
    }


async def test_assignment_endpoints(client, make_user, make_vehicle):
    manager = await make_user(UserRole.MANAGER)
    driver = await make_user(UserRole.DRIVER)
    vehicle = await make_vehicle("A-1")
    payload = {"vehicle_id": vehicle.id, "driver_id": driver.id}

    first = await client.post("/v1/assignments", json=payload, headers=auth(manager))
    assert first.status_code == 201
    assignment_id = first.json()["data"]["id"]

    second = await client.post("/v1/assignments", json=payload, headers=auth(manager))
    assert second.status_code == 409
    assert second.json()["success"] is False
    assert second.json()["error"] == "Driver is already assigned to this vehicle"

    edges = await client.get(f"/v1/vehicles/{vehicle.id}/assignments", headers=auth(driver))
    assert [e["driver_id"] for e in edges.json()["data"]] == [driver.id]

    missing = await client.delete("/v1/assignments/9999", headers=auth(manager))
    assert missing.status_code == 404
    assert missing.json()["error"] == "Assignment not found"

    removed = await client.delete(f"/v1/assignments/{assignment_id}", headers=auth(manager))
    assert removed.status_code == 200
    assert removed.json()["data"] == {"id": assignment_id}


async def test_soft_deleted_vehicle_over_http(client, make_user, make_vehicle):
    admin = await make_user(UserRole.ADMIN)
    vehicle = await make_vehicle("DEL-1")

    record = await client.post("/v1/maintenance", json={
        "vehicle_id": vehicle.id,
        "maintenance_type": "INSPECTION",
        "description": "Annual inspection",
    }, headers=auth(admin))
    assert record.status_code == 201

    assert (await client.delete(f"/v1/vehicles/{vehicle.id}", headers=auth(admin))).status_code == 200

    listing = await client.get("/v1/vehicles", headers=auth(admin))
    assert listing.json()["data"] == []

    detail = await client.get(f"/v1/vehicles/{vehicle.id}", headers=auth(admin))
    assert detail.status_code == 200
    assert detail.json()["data"]["deleted_at"] is not None
    assert len(detail.json()["data"]["maintenance_records"]) == 1

    history = await client.get(f"/v1/maintenance/vehicles/{vehicle.id}", headers=auth(admin))
    assert len(history.json()["data"]) == 1


async def test_suspended_user_is_stopped_on_next_request(client, make_user):
    admin = await make_user(UserRole.ADMIN)
    driver = await make_user(UserRole.DRIVER)
    headers = auth(driver)

    assert (await client.get("/v1/dashboard", headers=headers)).status_code == 200

    response = await client.patch(
        f"/v1/users/{driver.id}/status", json={"status": "suspended", "reason": "audit"}, headers=auth(admin)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "suspended"

    blocked = await client.get("/v1/dashboard", headers=headers)
    assert blocked.status_code == 303
    assert blocked.headers["location"].startswith(settings.login_url)


async def test_status_change_without_revocation_still_blocks(client, make_user, db_session):
    driver = await make_user(UserRole.DRIVER)
    headers = auth(driver)

    driver.status = AccountStatus.SUSPENDED
    await db_session.commit()

    blocked = await client.get("/v1/dashboard", headers=headers)
    assert blocked.status_code == 303
    assert blocked.headers["location"] == f"{settings.login_url}?reason=account_suspended"


async def test_role_change_applies_on_next_request(client, make_user):
    admin = await make_user(UserRole.ADMIN)
    driver = await make_user(UserRole.DRIVER)
    headers = auth(driver)

    assert (await client.get("/v1/drivers", headers=headers)).status_code == 303

    response = await client.patch(f"/v1/users/{driver.id}/role", json={"role": "manager"}, headers=auth(admin))
    assert response.status_code == 200

    assert (await client.get("/v1/drivers", headers=headers)).status_code == 200


async def test_assignable_roles_endpoint(client, make_user):
    admin = await make_user(UserRole.ADMIN)
    response = await client.get("/v1/users/roles/assignable", headers=auth(admin))
    assert response.json()["data"] == {"roles": ["driver", "manager"]}


async def test_revocation_store_outage_fails_closed(client, make_user, mock_redis):
    driver = await make_user(UserRole.DRIVER)
    mock_redis.broken = True
    response = await client.get("/v1/dashboard", headers=auth(driver))
    assert response.status_code == 303
    assert response.headers["location"] == settings.login_url



class UnreachableResolver:
    async def resolve(self, credential):
        raise ConnectionError("identity store down")


async def test_identity_store_outage(client, make_user, monkeypatch):
    driver = await make_user(UserRole.DRIVER)
    monkeypatch.setattr(app.state, "identity_resolver", UnreachableResolver())

    response = await client.get("/health", headers=auth(driver))
    assert response.status_code == 200

    response = await client.get("/v1/dashboard", headers=auth(driver))
    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_AUTH_UNAVAILABLE"


async def test_validation_error_envelope(client, make_user):
    manager = await make_user(UserRole.MANAGER)
    response = await client.post("/v1/vehicles", json={"model": "Ducato"}, headers=auth(manager))
    assert response.status_code == 422
    assert response.json()["success"] is False
    assert response.json()["error_code"] == "ERR_VALIDATION"


async def test_unknown_route_inside_allowed_prefix_is_404_envelope(client, make_user):
    manager = await make_user(UserRole.MANAGER)
    response = await client.get("/v1/vehicles/1/unknown", headers=auth(manager))
    assert response.status_code == 404
    assert response.json()["success"] is False
