from vaultbox.domain.audit import AUDIT_COLLECTION


def _actions(store):
    return [data["action"] for _, data in store.query(AUDIT_COLLECTION)]


def test_session_sets_cookie(client, store, alice_token):
    resp = client.post("/auth/session", json={"idToken": alice_token})

    assert resp.status_code == 200
    assert resp.json() == {"user": {"uid": "uid-alice", "email": "alice@example.com", "role": None}}
    set_cookie = resp.headers["set-cookie"].lower()
    assert "session=" in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=strict" in set_cookie
    assert "auth.login_success" in _actions(store)

    # Cookie alone authenticates follow-up requests
    assert client.get("/auth/me").json()["user"]["uid"] == "uid-alice"


def test_session_rejects_bad_token(client, store):
    resp = client.post("/auth/session", json={"idToken": "x" * 60})

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_INVALID"
    assert "auth.login_failed" in _actions(store)


def test_session_token_too_short(client):
    assert client.post("/auth/session", json={"idToken": "short"}).status_code == 422


def test_me_with_bearer(client, bob):
    assert client.get("/auth/me", headers=bob).json()["user"]["email"] == "bob@example.com"


def test_logout_clears_cookie(client, store, alice_token):
    client.post("/auth/session", json={"idToken": alice_token})

    resp = client.post("/auth/logout")

    assert resp.status_code == 200
    assert "auth.logout" in _actions(store)
    assert client.get("/auth/me").status_code == 401


def test_logout_without_session(client):
    assert client.post("/auth/logout").json() == {"ok": True}
