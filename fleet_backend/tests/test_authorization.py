"""
Authorization service tests: role membership and row ownership.
"""

import pytest

from fleet_backend.app.core.exceptions import PermissionDeniedError
from fleet_backend.app.core.policy import Action
from fleet_backend.app.models.enums import UserRole
from fleet_backend.app.services.authorization import AuthorizationService, UserResource, VehicleResource
from fleet_backend.tests.helpers import actor_for


@pytest.fixture
def authz(db_session):
    return AuthorizationService(db_session)


async def test_driver_cannot_create_vehicles(authz, make_user):
    driver = actor_for(await make_user(UserRole.DRIVER))
    with pytest.raises(PermissionDeniedError, match="Cannot create vehicles"):
        await authz.check_permission(driver, Action.VEHICLE_CREATE)


async def test_manager_cannot_delete_vehicles(authz, make_user):
    manager = actor_for(await make_user(UserRole.MANAGER))
    with pytest.raises(PermissionDeniedError):
        await authz.check_permission(manager, Action.VEHICLE_DELETE)


async def test_driver_vehicle_ownership(authz, make_user, make_vehicle, assign):
    manager = await make_user(UserRole.MANAGER)
    driver = await make_user(UserRole.DRIVER)
    mine = await make_vehicle("OWN-1")
    other = await make_vehicle("OTHER-1")
    await assign(mine, driver, manager)

    actor = actor_for(driver)
    await authz.check_permission(actor, Action.VEHICLE_VIEW, VehicleResource(mine.id))
    with pytest.raises(PermissionDeniedError):
        await authz.check_permission(actor, Action.VEHICLE_VIEW, VehicleResource(other.id))


async def test_manager_is_not_row_scoped(authz, make_user, make_vehicle):
    manager = actor_for(await make_user(UserRole.MANAGER))
    vehicle = await make_vehicle("ANY-1")
    await authz.check_permission(manager, Action.VEHICLE_VIEW, VehicleResource(vehicle.id))


async def test_user_data_visibility(authz, make_user):
    driver = await make_user(UserRole.DRIVER)
    other = await make_user(UserRole.DRIVER)
    manager = await make_user(UserRole.MANAGER)

    await authz.check_permission(actor_for(driver), Action.USER_VIEW, UserResource(driver.id))
    with pytest.raises(PermissionDeniedError, match="Cannot access this user"):
        await authz.check_permission(actor_for(driver), Action.USER_VIEW, UserResource(other.id))
    await authz.check_permission(actor_for(manager), Action.USER_VIEW, UserResource(other.id))


async def test_unknown_resource_type_is_denied_for_row_scoped_roles(authz, make_user):
    driver = actor_for(await make_user(UserRole.DRIVER))
    with pytest.raises(PermissionDeniedError):
        await authz.check_permission(driver, Action.VEHICLE_VIEW, object())


@pytest.mark.parametrize("role, expected", [
    (UserRole.DRIVER, []),
    (UserRole.MANAGER, []),
    (UserRole.ADMIN, [UserRole.DRIVER, UserRole.MANAGER]),
    (UserRole.SUPER_ADMIN, [UserRole.DRIVER, UserRole.MANAGER, UserRole.ADMIN]),
])
async def test_assignable_roles(authz, make_user, role, expected):
    assert authz.assignable_roles(actor_for(await make_user(role))) == expected


async def test_admin_cannot_manage_self_or_peers(authz, make_user):
    admin = await make_user(UserRole.ADMIN)
    peer = await make_user(UserRole.ADMIN)
    driver = await make_user(UserRole.DRIVER)
    actor = actor_for(admin)

    await authz.ensure_can_manage_user(actor, driver.id, driver.role)
    with pytest.raises(PermissionDeniedError, match="own account"):
        await authz.ensure_can_manage_user(actor, admin.id, admin.role)
    with pytest.raises(PermissionDeniedError):
        await authz.ensure_can_manage_user(actor, peer.id, peer.role)
    with pytest.raises(PermissionDeniedError, match="super_admin"):
        await authz.ensure_can_assign_role(actor, UserRole.SUPER_ADMIN)


async def test_manager_cannot_manage_users(authz, make_user):
    manager = actor_for(await make_user(UserRole.MANAGER))
    driver = await make_user(UserRole.DRIVER)
    with pytest.raises(PermissionDeniedError, match="Cannot manage users"):
        await authz.ensure_can_manage_user(manager, driver.id, driver.role)
