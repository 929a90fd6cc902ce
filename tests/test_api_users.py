"""Tests for the /users routes."""


def test_create_user(test_client, store) -> None:
    """Test registration returns the user with its default groups."""
    response = test_client.post(
        "/users", json={"displayName": "Dana Lee", "phoneNumber": "+15559990000"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["displayName"] == "Dana Lee"
    assert [g["groupName"] for g in body["groups"]] == [
        "Everyone",
        "Family",
        "Friends",
        "Followers",
    ]
    assert body["id"] in store.users


def test_create_user_duplicate_phone_is_409(test_client, store) -> None:
    response = test_client.post(
        "/users",
        json={"displayName": "Copy", "phoneNumber": store.users["U1"].phone_number},
    )

    assert response.status_code == 409
    assert response.json()["details"]["code"] == "CONFLICT"


def test_create_user_missing_field_is_400(test_client) -> None:
    response = test_client.post("/users", json={"displayName": "Dana Lee"})

    assert response.status_code == 400


def test_get_user(test_client) -> None:
    response = test_client.get("/users/U2")

    assert response.status_code == 200
    assert response.json()["displayName"] == "Bob Stone"


def test_get_user_not_found(test_client) -> None:
    response = test_client.get("/users/U404")

    assert response.status_code == 404
    assert response.json()["details"]["code"] == "NOT_FOUND"


def test_create_group(test_client, store) -> None:
    response = test_client.post("/users/U1/groups", json={"name": "Book Club"})

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Book Club"
    assert body["createdBy"] == "U1"
    assert store.users["U1"].owns_group(body["id"])


def test_create_group_unknown_owner(test_client) -> None:
    response = test_client.post("/users/U404/groups", json={"name": "Book Club"})

    assert response.status_code == 404


def test_get_user_hides_refresh_token(test_client, store) -> None:
    """Test refresh tokens never leave the service."""
    from huddle.models.identity import RefreshToken

    store.users["U2"] = store.users["U2"].model_copy(
        update={"refresh_token": RefreshToken(token="secret-token", expires_at=1)}
    )

    response = test_client.get("/users/U2")

    assert response.status_code == 200
    assert "refreshToken" not in response.json()
    assert "secret-token" not in response.text
