"""
Integration tests for branch complaints.
"""

from datetime import timedelta

import pytest

from db.enums import ComplaintPriority, ComplaintStatus
from db.models import utc_now
from tests.factories import ComplaintFactory, persist

URL = "/api/complaints"


def _complaint_payload(branch, **overrides):
    payload = {
        "branch_id": branch.id,
        "branch_name": branch.branch_name,
        "complaint_text": "Cash deposit not reflected in account",
        "customer_data": {"name": "Bilal Ahmed", "account": "0012-3456789"},
        "priority": "high",
    }
    payload.update(overrides)
    return payload


class TestComplaintWrites:
    """Tests for create, update and delete."""

    @pytest.mark.asyncio
    async def test_manager_creates_for_own_branch(self, client, manager_headers, branch):
        response = await client.post(URL, json=_complaint_payload(branch), headers=manager_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["priority"] == "high"
        assert body["customerData"]["name"] == "Bilal Ahmed"
        assert body["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_plain_string_customer_data_kept_as_raw(self, client, admin_headers, branch):
        response = await client.post(
            URL, json=_complaint_payload(branch, customer_data="walk-in, no account"), headers=admin_headers
        )

        assert response.json()["customerData"] == {"raw_data": "walk-in, no account"}

    @pytest.mark.asyncio
    async def test_json_string_customer_data_parsed(self, client, admin_headers, branch):
        response = await client.post(
            URL, json=_complaint_payload(branch, customer_data='{"phone": "0300-0000000"}'), headers=admin_headers
        )

        assert response.json()["customerData"] == {"phone": "0300-0000000"}

    @pytest.mark.asyncio
    async def test_manager_cannot_create_for_other_branch(self, client, manager_headers, other_branch):
        response = await client.post(URL, json=_complaint_payload(other_branch), headers=manager_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "You can only manage complaints for your own branch"

    @pytest.mark.asyncio
    async def test_unknown_branch(self, client, admin_headers, branch):
        response = await client.post(URL, json=_complaint_payload(branch, branch_id=999), headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Branch not found"

    @pytest.mark.asyncio
    async def test_blank_text_rejected(self, client, admin_headers, branch):
        response = await client.post(URL, json=_complaint_payload(branch, complaint_text="   "), headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, admin_headers, branch):
        created = (await client.post(URL, json=_complaint_payload(branch), headers=admin_headers)).json()
        complaint_id = created["complaintId"]

        updated = await client.put(
            f"{URL}/{complaint_id}", json=_complaint_payload(branch, status="resolved"), headers=admin_headers
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "resolved"
        assert updated.json()["timestamp"] == created["timestamp"]

        assert (await client.delete(f"{URL}/{complaint_id}", headers=admin_headers)).status_code == 204
        assert (await client.get(f"{URL}/{complaint_id}", headers=admin_headers)).status_code == 404


class TestComplaintReads:
    """Tests for listing, stats and analytics."""

    @pytest.mark.asyncio
    async def test_manager_scoped_list(self, client, db_session, manager_headers, branch, other_branch):
        await persist(db_session, ComplaintFactory.create(branch), ComplaintFactory.create(other_branch))

        body = (await client.get(URL, headers=manager_headers)).json()

        assert body["total"] == 1
        assert body["items"][0]["branchId"] == branch.id

    @pytest.mark.asyncio
    async def test_other_branch_complaint_is_404(self, client, db_session, manager_headers, other_branch):
        complaint = await persist(db_session, ComplaintFactory.create(other_branch))

        response = await client.get(f"{URL}/{complaint.complaint_id}", headers=manager_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_sort_by_priority(self, client, db_session, admin_headers, branch):
        await persist(
            db_session,
            ComplaintFactory.create(branch, priority=ComplaintPriority.LOW),
            ComplaintFactory.create(branch, priority=ComplaintPriority.URGENT),
            ComplaintFactory.create(branch, priority=ComplaintPriority.MEDIUM),
        )

        body = (await client.get(URL, params={"sort_by": "priority", "sort_order": "desc"}, headers=admin_headers)).json()

        assert [c["priority"] for c in body["items"]] == ["urgent", "medium", "low"]

    @pytest.mark.asyncio
    async def test_invalid_sort_field(self, client, admin_headers):
        response = await client.get(URL, params={"sort_by": "complaint_text"}, headers=admin_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_filters_and_search(self, client, db_session, admin_headers, branch):
        await persist(
            db_session,
            ComplaintFactory.create(branch, status=ComplaintStatus.CLOSED, complaint_text="Locker key lost"),
            ComplaintFactory.create(branch, status=ComplaintStatus.PENDING, complaint_text="Cheque book delayed"),
        )

        closed = (await client.get(URL, params={"status": "closed"}, headers=admin_headers)).json()
        assert [c["complaintText"] for c in closed["items"]] == ["Locker key lost"]

        found = (await client.get(URL, params={"search": "cheque"}, headers=admin_headers)).json()
        assert [c["complaintText"] for c in found["items"]] == ["Cheque book delayed"]

    @pytest.mark.asyncio
    async def test_stats(self, client, db_session, admin_headers, branch):
        await persist(
            db_session,
            ComplaintFactory.create(branch, status=ComplaintStatus.PENDING, priority=ComplaintPriority.URGENT),
            ComplaintFactory.create(branch, status=ComplaintStatus.PENDING),
            ComplaintFactory.create(branch, status=ComplaintStatus.IN_PROGRESS),
            ComplaintFactory.create(branch, status=ComplaintStatus.RESOLVED),
        )

        body = (await client.get(f"{URL}/stats", headers=admin_headers)).json()

        assert body == {
            "total": 4,
            "pending": 2,
            "inProgress": 1,
            "resolved": 1,
            "closed": 0,
            "urgent": 1,
            "today": 4,
        }

    @pytest.mark.asyncio
    async def test_stats_empty(self, client, manager_headers):
        body = (await client.get(f"{URL}/stats", headers=manager_headers)).json()
        assert body["total"] == 0 and body["pending"] == 0

    @pytest.mark.asyncio
    async def test_analytics(self, client, db_session, admin_headers, branch):
        await persist(
            db_session,
            ComplaintFactory.create(branch, priority=ComplaintPriority.HIGH),
            ComplaintFactory.create(branch, priority=ComplaintPriority.HIGH),
            ComplaintFactory.create(branch, priority=ComplaintPriority.LOW, status=ComplaintStatus.CLOSED),
            ComplaintFactory.create(branch, timestamp=utc_now() - timedelta(days=800)),
        )

        body = (await client.get(f"{URL}/analytics", headers=admin_headers)).json()

        trends = body["monthlyTrends"]
        assert len(trends) == 6
        assert trends[-1]["month"] == utc_now().strftime("%Y-%m")
        assert trends[-1]["count"] == 3
        assert sum(t["count"] for t in trends) == 3

        priorities = {p["name"]: p for p in body["priorityDistribution"]}
        assert priorities["high"]["count"] == 2
        assert priorities["high"]["percentage"] == 50.0
        assert priorities["urgent"]["count"] == 0

        statuses = {s["name"]: s["count"] for s in body["statusDistribution"]}
        assert statuses == {"pending": 3, "in_progress": 0, "resolved": 0, "closed": 1}
