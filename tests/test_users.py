"""Tests for administrator user management."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esg_api.core.security import verify_password
from esg_api.models.core import AuditLog, User
from esg_api.models.enums import AuditAction
from esg_api.modules.audit.trail import AuditTrail

from conftest import ADMIN_ID, ANALYST_ID, ORG

pytestmark = pytest.mark.anyio


class TestUserManagement:
    async def test_list_users_with_filters(self, client: AsyncClient, login_as):
        login_as("admin")
        resp = await client.get("/v1/users")
        assert resp.status_code == 200
        assert resp.json()["total"] == 4

        resp = await client.get("/v1/users", params={"role": "esg_analyst"})
        assert resp.json()["total"] == 2

        resp = await client.get("/v1/users", params={"organization": ORG, "page_size": 2})
        data = resp.json()
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert len(data["items"]) == 2
        assert all("password_hash" not in item for item in data["items"])

    async def test_non_admin_forbidden(self, client: AsyncClient, login_as):
        for role in ("analyst", "auditor"):
            login_as(role)
            resp = await client.get("/v1/users")
            assert resp.status_code == 403

    async def test_create_user(
        self, client: AsyncClient, login_as, db: AsyncSession, audit_trail: AuditTrail
    ):
        login_as("admin")
        resp = await client.post(
            "/v1/users",
            json={
                "name": "New Auditor",
                "email": "New.Auditor@Acme.com",
                "password": "s3cure-passphrase",
                "role": "auditor",
                "organization": ORG,
            },
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["email"] == "new.auditor@acme.com"
        assert data["role"] == "auditor"
        assert data["created_by"] == str(ADMIN_ID)

        await audit_trail.drain()
        actions = (await db.execute(select(AuditLog.action))).scalars().all()
        assert AuditAction.USER_CREATED.value in actions

    async def test_create_duplicate_email_409(self, client: AsyncClient, login_as):
        login_as("admin")
        resp = await client.post(
            "/v1/users",
            json={
                "name": "Copy Cat",
                "email": "ANALYST@acme.com",
                "password": "another-passphrase",
                "organization": ORG,
            },
        )
        assert resp.status_code == 409

    async def test_get_user_and_404(self, client: AsyncClient, login_as):
        login_as("admin")
        resp = await client.get(f"/v1/users/{ANALYST_ID}")
        assert resp.status_code == 200
        assert resp.json()["email"] == "analyst@acme.com"

        resp = await client.get(f"/v1/users/{uuid.uuid4()}")
        assert resp.status_code == 404

    async def test_update_user(self, client: AsyncClient, login_as, db: AsyncSession):
        login_as("admin")
        resp = await client.put(
            f"/v1/users/{ANALYST_ID}",
            json={"role": "auditor", "is_active": False, "password": "rotated-passphrase"},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["role"] == "auditor"
        assert data["is_active"] is False
        assert data["name"] == "Ana Analyst"

        db.expunge_all()
        stored = await db.get(User, ANALYST_ID)
        assert verify_password("rotated-passphrase", stored.password_hash)

    async def test_delete_user(self, client: AsyncClient, login_as, db: AsyncSession):
        login_as("admin")
        resp = await client.delete(f"/v1/users/{ANALYST_ID}")
        assert resp.status_code == 204

        db.expunge_all()
        assert await db.get(User, ANALYST_ID) is None

    async def test_cannot_delete_self(self, client: AsyncClient, login_as):
        login_as("admin")
        resp = await client.delete(f"/v1/users/{ADMIN_ID}")
        assert resp.status_code == 400
