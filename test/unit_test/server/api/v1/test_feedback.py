import pytest
from httpx import AsyncClient

from requisition_workflow.core.database.entities import OrganizationMember

pytestmark = pytest.mark.asyncio

API = "/api/v1/feedback"


async def submit(client: AsyncClient, headers, title="Export to CSV", **extra):
    payload = {"title": title, "description": "Please add it", "category": "feature_request", **extra}
    response = await client.post(API, json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


async def test_submit_feedback(client: AsyncClient, tenant, auth_headers):
    body = await submit(client, auth_headers(tenant.submitter), title="<b>CSV</b> export", priority="high")

    assert body["title"] == "&lt;b&gt;CSV&lt;&#x2F;b&gt; export"
    assert body["org_id"] == tenant.organization.id
    assert body["user_id"] == tenant.submitter.id
    assert body["status"] == "open"
    assert body["priority"] == "high"
    assert body["upvotes"] == 0
    assert body["has_voted"] is False


async def test_feedback_is_attributed_to_acting_organization(
    client: AsyncClient, session, tenant, make_tenant, auth_headers
):
    other = await make_tenant("bethel")
    session.add(OrganizationMember(organization_id=other.organization.id, user_id=tenant.submitter.id))
    await session.commit()

    member_of = await submit(client, auth_headers(tenant.submitter, other.organization))
    headers = auth_headers(tenant.reviewer)
    headers["X-Organization-Id"] = other.organization.id
    outsider = await submit(client, headers)

    assert member_of["org_id"] == other.organization.id
    assert outsider["org_id"] == tenant.organization.id


async def test_vote_toggles(client: AsyncClient, tenant, auth_headers):
    feedback = await submit(client, auth_headers(tenant.submitter))
    url = f"{API}/{feedback['id']}/vote"

    first = await client.post(url, headers=auth_headers(tenant.reviewer))
    other = await client.post(url, headers=auth_headers(tenant.approver))
    again = await client.post(url, headers=auth_headers(tenant.reviewer))

    assert first.json() == {"voted": True, "upvotes": 1}
    assert other.json() == {"voted": True, "upvotes": 2}
    assert again.json() == {"voted": False, "upvotes": 1}

    detail = await client.get(f"{API}/{feedback['id']}", headers=auth_headers(tenant.approver))
    assert detail.json()["has_voted"] is True


async def test_list_sorted_by_upvotes_with_vote_flags(client: AsyncClient, tenant, make_tenant, auth_headers):
    other = await make_tenant("bethel")
    quiet = await submit(client, auth_headers(tenant.submitter), title="Dark mode", category="improvement")
    popular = await submit(client, auth_headers(other.submitter), title="Mobile app")
    await client.post(f"{API}/{popular['id']}/vote", headers=auth_headers(tenant.reviewer))

    response = await client.get(API, headers=auth_headers(tenant.reviewer))

    rows = response.json()
    assert [row["id"] for row in rows] == [popular["id"], quiet["id"]]
    assert [row["has_voted"] for row in rows] == [True, False]

    improvements = await client.get(API, params={"category": "improvement"}, headers=auth_headers(tenant.reviewer))
    assert [row["id"] for row in improvements.json()] == [quiet["id"]]


async def test_unknown_feedback(client: AsyncClient, tenant, auth_headers):
    response = await client.post(f"{API}/missing/vote", headers=auth_headers(tenant.submitter))

    assert response.status_code == 404


async def test_platform_admin_triages(client: AsyncClient, session, tenant, auth_headers):
    tenant.owner.is_platform_admin = True
    await session.commit()
    feedback = await submit(client, auth_headers(tenant.submitter))

    response = await client.patch(
        f"{API}/{feedback['id']}",
        json={"status": "planned", "admin_response": "Coming next quarter"},
        headers=auth_headers(tenant.owner),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "planned"
    assert body["admin_response"] == "Coming next quarter"
    assert body["responded_at"] is not None


async def test_triage_requires_platform_admin(client: AsyncClient, tenant, auth_headers):
    feedback = await submit(client, auth_headers(tenant.submitter))

    response = await client.patch(
        f"{API}/{feedback['id']}", json={"status": "declined"}, headers=auth_headers(tenant.owner)
    )

    assert response.status_code == 403
