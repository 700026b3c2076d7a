def test_userinfo_counts_by_effective_status(logged_in_client):
    client = logged_in_client
    client.post("/api/reminders", json={"title": "Past", "date": "2020-01-01"})
    client.post("/api/reminders", json={"title": "Future", "date": "2999-01-01"})
    client.post("/api/reminders", json={"title": "Undated"})
    done = client.post("/api/reminders", json={"title": "Done", "date": "2999-01-01"}).json()
    client.post(f"/api/reminders/{done['id']}/complete")

    res = client.get("/api/dashboard/userinfo")
    assert res.status_code == 200
    body = res.json()
    assert body["email"] == "user@example.com"
    assert body["name"] == "user"
    assert isinstance(body["id"], int)
    assert body["remindersCount"] == 4
    assert body["upcomingCount"] == 2
    assert body["completedCount"] == 1
    assert body["overdueCount"] == 1


def test_userinfo_prefers_stored_name(logged_in_client, db):
    from cling.crud import user as user_crud

    user = user_crud.get_by_email(db, email="user@example.com")
    user.name = "Priya"
    db.commit()

    body = logged_in_client.get("/api/dashboard/userinfo").json()
    assert body["name"] == "Priya"
    assert body["remindersCount"] == 0


def test_userinfo_falls_back_to_session_claims(client):
    from cling.core import security

    token = security.create_session_token(987, "ghost@example.com")
    res = client.get("/api/dashboard/userinfo", headers={"Cookie": f"token={token}"})
    assert res.status_code == 200
    body = res.json()
    assert body["email"] == "ghost@example.com"
    assert body["name"] == "ghost"
    assert body["id"] == 987
