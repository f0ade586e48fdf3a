"""
User service tests: profile visibility, status and role management.
"""

import pytest

from fleet_backend.app.core.exceptions import PermissionDeniedError, ResourceNotFoundError
from fleet_backend.app.core.token_revocation import are_user_tokens_revoked
from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.app.services.audit import AuditAction
from fleet_backend.app.services.user_service import UserService
from fleet_backend.tests.helpers import actor_for


@pytest.fixture
def service(db_session):
    return UserService(db_session)


async def test_driver_reads_only_own_profile(service, make_user):
    driver = await make_user(UserRole.DRIVER)
    other = await make_user(UserRole.DRIVER)

    assert (await service.get_user(actor_for(driver), driver.id)).id == driver.id
    with pytest.raises(PermissionDeniedError):
        await service.get_user(actor_for(driver), other.id)


async def test_get_missing_user(service, make_user):
    manager = await make_user(UserRole.MANAGER)
    with pytest.raises(ResourceNotFoundError, match="User not found"):
        await service.get_user(actor_for(manager), 9999)


async def test_list_users_needs_user_management(service, make_user):
    manager = await make_user(UserRole.MANAGER)
    admin = await make_user(UserRole.ADMIN)
    await make_user(UserRole.DRIVER)

    with pytest.raises(PermissionDeniedError):
        await service.list_users(actor_for(manager))

    users, total = await service.list_users(actor_for(admin), role=UserRole.DRIVER)
    assert total == 1
    assert users[0].role == UserRole.DRIVER


async def test_suspension_revokes_sessions(service, make_user, db_session):
    admin = await make_user(UserRole.ADMIN)
    driver = await make_user(UserRole.DRIVER)

    updated = await service.change_status(actor_for(admin), driver.id, AccountStatus.SUSPENDED, reason="late")
    assert updated.status == AccountStatus.SUSPENDED
    assert await are_user_tokens_revoked(driver.id)

    trail = await service.get_audit_trail(
        actor_for(await make_user(UserRole.SUPER_ADMIN)), action=AuditAction.USER_STATUS_CHANGED
    )
    assert trail[0].target_user_id == driver.id
    assert trail[0].meta_data == {"previous_status": "active", "status": "suspended", "reason": "late"}


async def test_reactivation_clears_revocation(service, make_user):
    admin = await make_user(UserRole.ADMIN)
    driver = await make_user(UserRole.DRIVER, status=AccountStatus.SUSPENDED)

    await service.change_status(actor_for(admin), driver.id, AccountStatus.SUSPENDED)
    assert await are_user_tokens_revoked(driver.id)

    await service.change_status(actor_for(admin), driver.id, AccountStatus.ACTIVE)
    assert not await are_user_tokens_revoked(driver.id)


async def test_admin_cannot_suspend_super_admin(service, make_user):
    admin = await make_user(UserRole.ADMIN)
    root = await make_user(UserRole.SUPER_ADMIN)
    with pytest.raises(PermissionDeniedError):
        await service.change_status(actor_for(admin), root.id, AccountStatus.SUSPENDED)


async def test_role_change_respects_tiers(service, make_user):
    admin = await make_user(UserRole.ADMIN)
    root = await make_user(UserRole.SUPER_ADMIN)
    driver = await make_user(UserRole.DRIVER)

    promoted = await service.change_role(actor_for(admin), driver.id, UserRole.MANAGER)
    assert promoted.role == UserRole.MANAGER

    with pytest.raises(PermissionDeniedError):
        await service.change_role(actor_for(admin), driver.id, UserRole.ADMIN)

    promoted = await service.change_role(actor_for(root), driver.id, UserRole.ADMIN)
    assert promoted.role == UserRole.ADMIN


async def test_audit_trail_is_super_admin_only(service, make_user):
    admin = await make_user(UserRole.ADMIN)
    with pytest.raises(PermissionDeniedError):
        await service.get_audit_trail(actor_for(admin))
