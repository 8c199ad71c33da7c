import pytest

from aquora.auth.roles import OfficerRole
from aquora.core.errors import NotFound, ValidationFailed
from aquora.societies import service
from aquora.societies.schemas import OfficerAssignRequest


@pytest.fixture
def admin_headers(make_user, bearer):
    admin = make_user("SUPER_ADMIN")
    return bearer(admin.mobile_number)


def _assign(client, headers, society_id, user_id, role):
    return client.post(
        f"/api/v1/societies/{society_id}/officers/assign",
        json={"userId": user_id, "role": role},
        headers=headers,
    )


def test_super_admin_creates_and_lists_societies(client, admin_headers):
    resp = client.post(
        "/api/v1/societies",
        json={"name": "  Galle Water Society ", "waterBoardRegNo": "WB-42", "billingDayOfMonth": 5},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    created = resp.json()["data"]
    assert created["id"].startswith("soc_")
    assert created["name"] == "Galle Water Society"
    assert created["isActive"] is True

    listed = client.get("/api/v1/societies", headers=admin_headers).json()["data"]
    assert [s["id"] for s in listed] == [created["id"]]


def test_non_admin_cannot_list_or_create_societies(client, make_user, bearer):
    headers = bearer(make_user("TREASURER").mobile_number)

    assert client.get("/api/v1/societies", headers=headers).status_code == 403
    resp = client.post("/api/v1/societies", json={"name": "X", "waterBoardRegNo": "Y"}, headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"]["message"] == "Forbidden"


def test_tenant_isolation(client, make_user, make_society, bearer):
    home = make_society("Home")
    other = make_society("Other")
    headers = bearer(make_user("SECRETARY", society_id=home.id).mobile_number)

    assert client.get(f"/api/v1/societies/{home.id}", headers=headers).status_code == 200
    assert client.get(f"/api/v1/societies/{other.id}", headers=headers).status_code == 403
    assert client.get(f"/api/v1/societies/{other.id}/officers", headers=headers).status_code == 403
    assert client.get(f"/api/v1/societies/{other.id}/users", headers=headers).status_code == 403


def test_unbound_user_is_refused_everywhere(client, make_user, make_society, bearer):
    society = make_society()
    headers = bearer(make_user("METER_READER").mobile_number)
    assert client.get(f"/api/v1/societies/{society.id}", headers=headers).status_code == 403


def test_society_detail_requires_authentication(client, make_society):
    society = make_society()
    assert client.get(f"/api/v1/societies/{society.id}").status_code == 401


def test_missing_society_is_not_found_for_super_admin(client, admin_headers):
    assert client.get("/api/v1/societies/soc_missing", headers=admin_headers).status_code == 404


def test_reassigning_an_office_keeps_history(client, make_user, make_society, admin_headers):
    society = make_society()
    u1 = make_user("TREASURER", society_id=society.id)
    u2 = make_user("TREASURER", society_id=society.id)

    first = _assign(client, admin_headers, society.id, u1.id, "PRESIDENT")
    assert first.status_code == 201
    assert first.json()["data"]["assignment"]["user"]["id"] == u1.id

    second = _assign(client, admin_headers, society.id, u2.id, "PRESIDENT")
    assert second.status_code == 201
    active = second.json()["data"]["officers"]
    assert [(o["user"]["id"], o["role"]) for o in active] == [(u2.id, "PRESIDENT")]

    history = client.get(
        f"/api/v1/societies/{society.id}/officers",
        params={"includeInactive": "true"},
        headers=admin_headers,
    ).json()["data"]["officers"]
    by_user = {o["user"]["id"]: o for o in history}
    assert by_user[u1.id]["isActive"] is False
    assert by_user[u1.id]["unassignedAt"] is not None
    assert by_user[u2.id]["isActive"] is True
    assert by_user[u2.id]["unassignedAt"] is None


def test_assignment_changes_effective_role_at_next_login(client, make_user, make_society, admin_headers, login):
    society = make_society()
    user = make_user("TREASURER")

    assert _assign(client, admin_headers, society.id, user.id, "SECRETARY").status_code == 201

    data = login(user.mobile_number)
    assert data["effectiveRole"] == "SECRETARY"
    assert data["effectiveSocietyId"] == society.id
    assert data["user"]["role"] == "TREASURER"
    # unbound user became a member of the society
    assert data["user"]["societyId"] == society.id

    headers = {"Authorization": f"Bearer {data['accessToken']}"}
    assert client.get(f"/api/v1/societies/{society.id}", headers=headers).status_code == 200


def test_offices_stay_exclusive_over_a_sequence_of_assignments(db, make_user, make_society):
    society = make_society()
    users = [make_user("TREASURER", society_id=society.id) for _ in range(3)]
    sequence = [
        (users[0], OfficerRole.PRESIDENT),
        (users[1], OfficerRole.SECRETARY),
        (users[1], OfficerRole.PRESIDENT),
        (users[2], OfficerRole.SECRETARY),
        (users[0], OfficerRole.SECRETARY),
    ]

    for user, role in sequence:
        service.assign_officer(db, society.id, OfficerAssignRequest(user_id=user.id, role=role), actor_id="u_admin")

        officers = service.get_officers(db, society.id)
        roles = [o.role for o in officers]
        holders = [o.user.id for o in officers]
        assert len(roles) == len(set(roles))
        assert len(holders) == len(set(holders))

    final = {o.role: o.user.id for o in service.get_officers(db, society.id)}
    assert final == {OfficerRole.PRESIDENT: users[1].id, OfficerRole.SECRETARY: users[0].id}


def test_cannot_assign_in_inactive_society(db, make_user, make_society):
    society = make_society(is_active=False)
    user = make_user("TREASURER")

    with pytest.raises(ValidationFailed) as exc:
        service.assign_officer(db, society.id, OfficerAssignRequest(user_id=user.id, role="PRESIDENT"), actor_id="u_a")
    assert exc.value.message == "Society is inactive"


def test_cannot_assign_member_of_other_society(db, make_user, make_society):
    society = make_society("Here")
    elsewhere = make_society("Elsewhere")
    user = make_user("TREASURER", society_id=elsewhere.id)

    with pytest.raises(ValidationFailed) as exc:
        service.assign_officer(db, society.id, OfficerAssignRequest(user_id=user.id, role="PRESIDENT"), actor_id="u_a")
    assert exc.value.message == "User belongs to a different society"
    assert service.get_officers(db, society.id) == []


def test_assign_unknown_user_or_society(db, make_user, make_society):
    society = make_society()
    with pytest.raises(NotFound):
        service.assign_officer(db, society.id, OfficerAssignRequest(user_id="u_missing", role="PRESIDENT"), actor_id="u_a")

    user = make_user("TREASURER")
    with pytest.raises(NotFound):
        service.assign_officer(db, "soc_missing", OfficerAssignRequest(user_id=user.id, role="PRESIDENT"), actor_id="u_a")


def test_only_officer_roles_can_be_assigned(client, make_user, make_society, admin_headers):
    society = make_society()
    user = make_user("TREASURER", society_id=society.id)
    resp = _assign(client, admin_headers, society.id, user.id, "TREASURER")
    assert resp.status_code == 400


def test_deactivate_officer(client, make_user, make_society, admin_headers):
    society = make_society()
    user = make_user("TREASURER", society_id=society.id)
    assignment_id = _assign(client, admin_headers, society.id, user.id, "PRESIDENT").json()["data"]["assignment"]["id"]

    url = f"/api/v1/societies/{society.id}/officers/{assignment_id}/deactivate"
    resp = client.patch(url, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["officers"] == []

    # already inactive is not an error
    assert client.patch(url, headers=admin_headers).status_code == 200

    missing = client.patch(f"/api/v1/societies/{society.id}/officers/sra_missing/deactivate", headers=admin_headers)
    assert missing.status_code == 404


def test_deactivate_rejects_assignment_of_other_society(client, make_user, make_society, admin_headers):
    society = make_society("A")
    other = make_society("B")
    user = make_user("TREASURER", society_id=society.id)
    assignment_id = _assign(client, admin_headers, society.id, user.id, "PRESIDENT").json()["data"]["assignment"]["id"]

    resp = client.patch(f"/api/v1/societies/{other.id}/officers/{assignment_id}/deactivate", headers=admin_headers)
    assert resp.status_code == 404


def test_society_users_filtered_by_role(client, make_user, make_society, admin_headers):
    society = make_society()
    make_user("METER_READER", society_id=society.id, full_name="Bandara")
    make_user("TREASURER", society_id=society.id, full_name="Amara")
    make_user("METER_READER", society_id=society.id, full_name="Chandra")
    make_user("METER_READER")

    every = client.get(f"/api/v1/societies/{society.id}/users", headers=admin_headers).json()["data"]
    assert [u["fullName"] for u in every] == ["Amara", "Bandara", "Chandra"]

    readers = client.get(
        f"/api/v1/societies/{society.id}/users", params={"role": "METER_READER"}, headers=admin_headers
    ).json()["data"]
    assert [u["fullName"] for u in readers] == ["Bandara", "Chandra"]


def test_update_society(client, make_society, admin_headers):
    society = make_society()
    url = f"/api/v1/societies/{society.id}"

    resp = client.patch(url, json={"address": "12 Lake Road", "dueDays": 14}, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["address"] == "12 Lake Road"
    assert data["dueDays"] == 14
    assert data["name"] == "Kandy Water Society"

    assert client.patch(url, json={}, headers=admin_headers).status_code == 400
    assert client.patch(url, json={"name": None}, headers=admin_headers).status_code == 400


def test_officer_cannot_update_society(client, make_user, make_society, bearer):
    society = make_society()
    headers = bearer(make_user("PRESIDENT", society_id=society.id).mobile_number)

    resp = client.patch(f"/api/v1/societies/{society.id}", json={"dueDays": 3}, headers=headers)
    assert resp.status_code == 403


def test_society_members_cannot_list_society_users(client, make_user, make_society, bearer):
    society = make_society()
    make_user("TREASURER", society_id=society.id)
    for role in ("METER_READER", "PRESIDENT"):
        headers = bearer(make_user(role, society_id=society.id).mobile_number)
        resp = client.get(f"/api/v1/societies/{society.id}/users", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Forbidden"
