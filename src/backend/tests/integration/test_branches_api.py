"""
Integration tests for branch management.
"""

import pytest

URL = "/api/branches"


def _branch_payload(**overrides):
    payload = {"branch_code": "ISB-001", "branch_name": "Islamabad Blue Area", "branch_city": "Islamabad"}
    payload.update(overrides)
    return payload


class TestBranches:
    """Tests for /branches."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, client, admin_headers):
        created = await client.post(URL, json=_branch_payload(), headers=admin_headers)

        assert created.status_code == 201
        branch_id = created.json()["id"]

        response = await client.get(f"{URL}/{branch_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["branchCode"] == "ISB-001"
        assert response.json()["isActive"] is True

    @pytest.mark.asyncio
    async def test_camel_case_input_accepted(self, client, admin_headers):
        response = await client.post(
            URL, json={"branchCode": "PSH-001", "branchName": "Peshawar Saddar"}, headers=admin_headers
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_duplicate_code(self, client, admin_headers, branch):
        response = await client.post(URL, json=_branch_payload(branch_code="KHI-001"), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Branch code already exists"

    @pytest.mark.asyncio
    async def test_update_to_taken_code(self, client, admin_headers, branch, other_branch):
        response = await client.put(
            f"{URL}/{other_branch.id}", json=_branch_payload(branch_code="KHI-001"), headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Branch code already exists"

    @pytest.mark.asyncio
    async def test_update_keeps_own_code(self, client, admin_headers, branch):
        response = await client.put(
            f"{URL}/{branch.id}",
            json=_branch_payload(branch_code="KHI-001", branch_name="Karachi Clifton"),
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["branchName"] == "Karachi Clifton"

    @pytest.mark.asyncio
    async def test_missing_required_fields(self, client, admin_headers):
        response = await client.post(URL, json={"branch_city": "Quetta"}, headers=admin_headers)

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail.startswith("The following fields are required:")
        assert "branchcode" in detail.lower().replace("_", "")

    @pytest.mark.asyncio
    async def test_delete_deactivates(self, client, admin_headers, branch):
        response = await client.delete(f"{URL}/{branch.id}", headers=admin_headers)
        assert response.status_code == 204

        body = (await client.get(URL, params={"is_active": False}, headers=admin_headers)).json()
        assert [b["id"] for b in body["items"]] == [branch.id]

    @pytest.mark.asyncio
    async def test_any_user_can_read_manager_cannot_write(self, client, manager_headers, branch):
        assert (await client.get(URL, headers=manager_headers)).status_code == 200
        response = await client.post(URL, json=_branch_payload(), headers=manager_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_search(self, client, admin_headers, branch, other_branch):
        body = (await client.get(URL, params={"search": "lahore"}, headers=admin_headers)).json()
        assert [b["branchCode"] for b in body["items"]] == ["LHE-001"]
