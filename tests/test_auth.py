"""
Auth & account tests.

Verifies:
1. Login issues HttpOnly cookies and the cookie alone authenticates.
2. Refresh tokens cannot stand in for access tokens.
3. Only super_admin creates accounts, optionally linked to a person.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import (create_access_token, create_refresh_token,
                               get_password_hash)
from app.models.enums import UserRole
from app.models.user import User


@pytest.mark.asyncio
async def test_login_sets_httponly_cookies(async_client: AsyncClient, db_session: AsyncSession):
    email = "cookie@test.local"
    password = "password123"
    user = User(email=email, hashed_password=get_password_hash(password), is_active=True, role="employee")
    db_session.add(user)
    await db_session.commit()

    response = await async_client.post(
        "/api/v1/auth/login", data={"username": email.upper(), "password": password}
    )

    assert response.status_code == 200
    assert "access_token" in response.cookies
    assert "refresh_token" in response.cookies

    set_cookie = response.headers.get("set-cookie")
    assert "HttpOnly" in set_cookie
    assert "SameSite=lax" in set_cookie

    # The client now carries the cookie; no Authorization header needed
    me = await async_client.get("/api/v1/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == email


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, db_session: AsyncSession):
    db_session.add(User(email="who@test.local", hashed_password=get_password_hash("right-one"), role="employee"))
    await db_session.commit()

    resp = await async_client.post(
        "/api/v1/auth/login", data={"username": "who@test.local", "password": "wrong-one"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_token(async_client: AsyncClient, employee):
    token = create_refresh_token(employee.id)
    resp = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_issues_new_pair(async_client: AsyncClient, employee):
    resp = await async_client.post(
        "/api/v1/auth/refresh", json={"refresh_token": create_refresh_token(employee.id)}
    )
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"

    bad = await async_client.post(
        "/api/v1/auth/refresh", json={"refresh_token": create_access_token(employee.id)}
    )
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_rejected(async_client: AsyncClient, make_user, headers_for):
    ghost = await make_user(UserRole.HR_MANAGER, is_active=False)
    resp = await async_client.get("/api/v1/auth/me", headers=headers_for(ghost))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_me_reports_person_link(async_client: AsyncClient, employee, headers_for):
    resp = await async_client.get("/api/v1/auth/me", headers=headers_for(employee))
    assert resp.status_code == 200
    data = resp.json()
    assert data["person_id"] == employee.person_id
    assert data["role"] == "employee"


@pytest.mark.asyncio
async def test_admin_creates_linked_user(async_client: AsyncClient, admin, make_person, headers_for):
    person = await make_person("Nina", "New")
    resp = await async_client.post(
        "/api/v1/auth/users",
        json={"email": "Nina@Test.local", "password": "s3cret-pass", "person_id": person.id},
        headers=headers_for(admin),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "nina@test.local"
    assert data["person_id"] == person.id
    assert data["role"] == "employee"

    # A person links to one account only
    again = await async_client.post(
        "/api/v1/auth/users",
        json={"email": "other@test.local", "password": "s3cret-pass", "person_id": person.id},
        headers=headers_for(admin),
    )
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_user_creation_rules(async_client: AsyncClient, admin, manager, headers_for):
    body = {"email": "x@test.local", "password": "s3cret-pass"}

    resp = await async_client.post("/api/v1/auth/users", json=body, headers=headers_for(manager))
    assert resp.status_code == 403

    resp = await async_client.post(
        "/api/v1/auth/users", json={**body, "role": "wizard"}, headers=headers_for(admin)
    )
    assert resp.status_code == 422

    resp = await async_client.post(
        "/api/v1/auth/users", json={**body, "person_id": 4242}, headers=headers_for(admin)
    )
    assert resp.status_code == 404
