def test_default_owner_is_seeded(owner):
    body = owner.get("/users/").json()
    assert body["total"] == 1
    assert body["users"][0]["username"] == "owner"
    assert body["users"][0]["role"] == "owner"


def test_create_user(owner):
    response = owner.post("/users/", json={"username": "Meena", "full_name": "Meena S", "role": "staff"})
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "meena"
    assert user["is_active"] is True

    staff_client_headers = {"X-Username": "meena"}
    assert owner.get("/expenses/", headers=staff_client_headers).status_code == 200


def test_duplicate_username(owner):
    payload = {"username": "ravi", "full_name": "Ravi K", "role": "admin"}
    assert owner.post("/users/", json=payload).status_code == 200
    assert owner.post("/users/", json=payload).status_code == 409


def test_invalid_role(owner):
    payload = {"username": "ravi", "full_name": "Ravi K", "role": "manager"}
    assert owner.post("/users/", json=payload).status_code == 422


def test_deactivated_user_is_rejected(owner, staff_user):
    response = owner.put(f"/users/{staff_user['id']}", json={"is_active": False})
    assert response.status_code == 200
    assert response.json()["user"]["is_active"] is False

    assert owner.get("/expenses/", headers={"X-Username": "meena"}).status_code == 401


def test_update_unknown_user(owner):
    assert owner.put("/users/999", json={"full_name": "Nobody"}).status_code == 404


def test_staff_cannot_manage_users(staff):
    assert staff.get("/users/").status_code == 403
    response = staff.post("/users/", json={"username": "sneaky", "full_name": "Sneaky", "role": "owner"})
    assert response.status_code == 403
    assert "users.manage" in response.json()["detail"]


def _own_id(client):
    users = client.get("/users/").json()["users"]
    return [u for u in users if u["username"] == "owner"][0]["id"]


def test_cannot_deactivate_own_account(owner):
    response = owner.put(f"/users/{_own_id(owner)}", json={"is_active": False})
    assert response.status_code == 400
    assert owner.get("/users/").status_code == 200


def test_cannot_change_own_role(owner):
    response = owner.put(f"/users/{_own_id(owner)}", json={"role": "staff"})
    assert response.status_code == 400
    assert owner.get("/users/").status_code == 200

    # renaming yourself is still allowed
    assert owner.put(f"/users/{_own_id(owner)}", json={"full_name": "Shop Owner R"}).status_code == 200
