"""
Integration tests for deployments (device <-> branch <-> user).

Each device, branch and user can take part in at most one deployment.
"""

import pytest
import pytest_asyncio

from db.enums import UserRole
from tests.factories import DeviceFactory, UserFactory, persist

URL = "/api/deployments"


@pytest_asyncio.fixture
async def spare_device(db_session):
    return await persist(db_session, DeviceFactory.create(device_mac="AA:BB:CC:00:00:02", ip_address="10.0.1.20"))


@pytest_asyncio.fixture
async def spare_user(db_session):
    return await persist(db_session, UserFactory.create(username="teller.two", role=UserRole.USER))


def _payload(device, branch, user):
    return {"device_id": device.id, "branch_id": branch.id, "user_id": str(user.uuid)}


class TestCreateDeployment:
    """Tests for POST /deployments."""

    @pytest.mark.asyncio
    async def test_create(self, client, admin_headers, spare_device, spare_user, other_branch):
        response = await client.post(URL, json=_payload(spare_device, other_branch, spare_user), headers=admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["deviceId"] == spare_device.id
        assert body["branch"]["branchCode"] == "LHE-001"
        assert body["user"]["username"] == "teller.two"
        assert body["device"]["deviceMac"] == "AA:BB:CC:00:00:02"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "missing,detail",
        [("device", "Device not found"), ("branch", "Branch not found"), ("user", "User not found")],
    )
    async def test_missing_references(self, client, admin_headers, spare_device, spare_user, other_branch, missing, detail):
        payload = _payload(spare_device, other_branch, spare_user)
        if missing == "device":
            payload["device_id"] = 9999
        elif missing == "branch":
            payload["branch_id"] = 9999
        else:
            payload["user_id"] = "00000000-0000-0000-0000-000000000000"

        response = await client.post(URL, json=payload, headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == detail

    @pytest.mark.asyncio
    async def test_device_already_deployed(self, client, admin_headers, deployed_manager, spare_user, other_branch):
        _, device, _ = deployed_manager

        response = await client.post(URL, json=_payload(device, other_branch, spare_user), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Device is already deployed to another branch"

    @pytest.mark.asyncio
    async def test_branch_already_has_device(self, client, admin_headers, deployed_manager, spare_device, spare_user, branch):
        response = await client.post(URL, json=_payload(spare_device, branch, spare_user), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Branch already has a device assigned"

    @pytest.mark.asyncio
    async def test_user_already_assigned(self, client, admin_headers, deployed_manager, spare_device, other_branch):
        manager, _, _ = deployed_manager

        response = await client.post(URL, json=_payload(spare_device, other_branch, manager), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "User is already assigned to another deployment"

    @pytest.mark.asyncio
    async def test_admin_only(self, client, manager_headers, spare_device, spare_user, other_branch):
        response = await client.post(URL, json=_payload(spare_device, other_branch, spare_user), headers=manager_headers)
        assert response.status_code == 403


class TestChangeDeployment:
    """Tests for update, delete and redeploy."""

    @pytest.mark.asyncio
    async def test_update_to_new_device(self, client, admin_headers, deployed_manager, spare_device, branch):
        manager, _, deployment = deployed_manager

        response = await client.put(
            f"{URL}/{deployment.uuid}", json=_payload(spare_device, branch, manager), headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["deviceId"] == spare_device.id

    @pytest.mark.asyncio
    async def test_update_keeping_same_links(self, client, admin_headers, deployed_manager, branch):
        manager, device, deployment = deployed_manager

        response = await client.put(
            f"{URL}/{deployment.uuid}", json=_payload(device, branch, manager), headers=admin_headers
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_then_redeploy(self, client, admin_headers, deployed_manager, other_branch):
        manager, device, deployment = deployed_manager

        deleted = await client.delete(f"{URL}/{deployment.uuid}", headers=admin_headers)
        assert deleted.status_code == 204
        assert (await client.get(f"{URL}/{deployment.uuid}", headers=admin_headers)).status_code == 404

        response = await client.post(URL, json=_payload(device, other_branch, manager), headers=admin_headers)
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_delete_unknown(self, client, admin_headers):
        response = await client.delete(f"{URL}/00000000-0000-0000-0000-000000000000", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Deployment not found"

    @pytest.mark.asyncio
    async def test_list_by_branch(self, client, admin_headers, deployed_manager, branch, other_branch):
        body = (await client.get(URL, params={"branch_id": branch.id}, headers=admin_headers)).json()
        assert body["total"] == 1

        body = (await client.get(URL, params={"branch_id": other_branch.id}, headers=admin_headers)).json()
        assert body["total"] == 0
