"""
Integration tests for the device directory.
"""

import pytest

from tests.factories import DeviceFactory, persist

URL = "/api/devices"


def _device_payload(**overrides):
    payload = {
        "device_name": "Teller Desk 1",
        "device_mac": "aa:bb:cc:dd:00:01",
        "ip_address": "10.0.2.1",
        "device_type": "voice-recorder",
        "device_status": "active",
    }
    payload.update(overrides)
    return payload


class TestDeviceWrites:
    """Tests for admin device management."""

    @pytest.mark.asyncio
    async def test_create_normalizes_mac(self, client, admin_headers):
        response = await client.post(URL, json=_device_payload(), headers=admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["deviceMac"] == "AA:BB:CC:DD:00:01"
        assert body["ipAddress"] == "10.0.2.1"
        assert body["branchName"] == "Unassigned"

    @pytest.mark.asyncio
    async def test_duplicate_mac_rejected(self, client, admin_headers):
        await client.post(URL, json=_device_payload(), headers=admin_headers)

        response = await client.post(
            URL, json=_device_payload(ip_address="10.0.2.2", device_mac="AA-BB-CC-DD-00-01"), headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Device MAC already exists"

    @pytest.mark.asyncio
    async def test_duplicate_ip_rejected(self, client, admin_headers):
        await client.post(URL, json=_device_payload(), headers=admin_headers)

        response = await client.post(
            URL, json=_device_payload(device_mac="AA:BB:CC:DD:00:02"), headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "IP address already assigned to another device"

    @pytest.mark.asyncio
    async def test_invalid_ip_rejected(self, client, admin_headers):
        response = await client.post(URL, json=_device_payload(ip_address="10.0.2"), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid fields:")

    @pytest.mark.asyncio
    async def test_non_admin_cannot_create(self, client, manager_headers):
        response = await client.post(URL, json=_device_payload(), headers=manager_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_overwrites_fields(self, client, admin_headers):
        created = (await client.post(URL, json=_device_payload(notes="old"), headers=admin_headers)).json()

        response = await client.put(
            f"{URL}/{created['id']}",
            json=_device_payload(device_name="Teller Desk 9", device_status="maintenance"),
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["deviceName"] == "Teller Desk 9"
        assert body["deviceStatus"] == "maintenance"
        assert body["notes"] is None

    @pytest.mark.asyncio
    async def test_update_missing_device(self, client, admin_headers):
        response = await client.put(f"{URL}/999", json=_device_payload(), headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Device not found"

    @pytest.mark.asyncio
    async def test_delete_is_soft_and_hides_device(self, client, admin_headers):
        created = (await client.post(URL, json=_device_payload(), headers=admin_headers)).json()

        response = await client.delete(f"{URL}/{created['id']}", headers=admin_headers)
        assert response.status_code == 204

        assert (await client.get(f"{URL}/{created['id']}", headers=admin_headers)).status_code == 404
        listing = (await client.get(URL, headers=admin_headers)).json()
        assert listing["total"] == 0

        # The MAC stays reserved by the deleted row
        again = await client.post(URL, json=_device_payload(ip_address="10.0.2.9"), headers=admin_headers)
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_refused_while_deployed(self, client, admin_headers, deployed_manager):
        _, device, _ = deployed_manager

        response = await client.delete(f"{URL}/{device.id}", headers=admin_headers)

        assert response.status_code == 400
        assert "remove the deployment first" in response.json()["detail"]


class TestDeviceReads:
    """Tests for branch-scoped device reads."""

    @pytest.mark.asyncio
    async def test_admin_sees_all(self, client, db_session, admin_headers, deployed_manager):
        await persist(db_session, DeviceFactory.create(device_mac="AA:BB:CC:00:00:99", device_name="Spare"))

        body = (await client.get(URL, headers=admin_headers)).json()

        assert body["total"] == 2
        names = {d["deviceName"]: d["branchName"] for d in body["items"]}
        assert names["Spare"] == "Unassigned"

    @pytest.mark.asyncio
    async def test_manager_sees_own_branch_only(self, client, db_session, manager_headers, deployed_manager, branch):
        _, device, _ = deployed_manager
        spare = await persist(db_session, DeviceFactory.create(device_mac="AA:BB:CC:00:00:99"))

        body = (await client.get(URL, headers=manager_headers)).json()

        assert body["total"] == 1
        assert body["items"][0]["id"] == device.id
        assert body["items"][0]["branchId"] == branch.id
        assert (await client.get(f"{URL}/{spare.id}", headers=manager_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_search_and_status_filter(self, client, db_session, admin_headers):
        await persist(
            db_session,
            DeviceFactory.create(device_name="Lobby Recorder", ip_address="10.0.8.1"),
            DeviceFactory.create(device_name="Vault Recorder", ip_address="10.0.8.2"),
        )

        by_name = (await client.get(URL, params={"search": "lobby"}, headers=admin_headers)).json()
        assert [d["deviceName"] for d in by_name["items"]] == ["Lobby Recorder"]

        inactive = (await client.get(URL, params={"device_status": "inactive"}, headers=admin_headers)).json()
        assert inactive["total"] == 0

    @pytest.mark.asyncio
    async def test_pagination(self, client, db_session, admin_headers):
        await persist(db_session, *[DeviceFactory.create(device_name=f"Recorder {i:02d}") for i in range(5)])

        body = (await client.get(URL, params={"page": 2, "limit": 2}, headers=admin_headers)).json()

        assert body["total"] == 5
        assert body["page"] == 2
        assert [d["deviceName"] for d in body["items"]] == ["Recorder 02", "Recorder 03"]
