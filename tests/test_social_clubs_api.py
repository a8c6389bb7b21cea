from clubhub.models.user import UserRole

from conftest import auth_header, make_event, make_user


def test_like_toggle(client, db_session, club_admin):
    student = make_user(db_session, "s@campus.edu", role=UserRole.student)
    ann = make_event(db_session, club_admin.club_id, club_admin.email)
    headers = auth_header(student)

    assert client.post(f"/announcements/{ann.id}/like", headers=headers).json() == {"ok": True, "liked": True, "like_count": 1}
    assert client.get(f"/announcements/{ann.id}/liked", headers=headers).json()["liked"] is True
    assert client.get("/announcements").json()["announcements"][0]["like_count"] == 1

    assert client.post(f"/announcements/{ann.id}/like", headers=headers).json() == {"ok": True, "liked": False, "like_count": 0}
    assert client.post("/announcements/9999/like", headers=headers).status_code == 404


def test_comments(client, db_session, club_admin):
    alice = make_user(db_session, "alice@campus.edu", role=UserRole.student, name="Alice")
    bob = make_user(db_session, "bob@campus.edu", role=UserRole.student, name="Bob")
    ann = make_event(db_session, club_admin.club_id, club_admin.email)

    r = client.post(f"/announcements/{ann.id}/comments", json={"comment_text": "  See you there  "}, headers=auth_header(alice))
    assert r.status_code == 200
    comment = r.json()["comment"]
    assert comment["comment_text"] == "See you there"
    assert comment["name"] == "Alice"

    assert client.post(f"/announcements/{ann.id}/comments", json={"comment_text": "   "}, headers=auth_header(bob)).status_code == 400
    assert client.post(f"/announcements/{ann.id}/comments", json={"comment_text": "x" * 501}, headers=auth_header(bob)).status_code == 400

    listing = client.get(f"/announcements/{ann.id}/comments").json()
    assert listing["count"] == 1
    assert client.get("/announcements").json()["announcements"][0]["comment_count"] == 1

    r = client.delete(f"/comments/{comment['id']}", headers=auth_header(bob))
    assert r.status_code == 403
    assert client.delete(f"/comments/{comment['id']}", headers=auth_header(alice)).status_code == 200
    assert client.delete(f"/comments/{comment['id']}", headers=auth_header(alice)).status_code == 404
    assert client.get(f"/announcements/{ann.id}/comments").json()["count"] == 0


def test_clubs_listing_and_detail(client, db_session, club_admin, clubs):
    listing = client.get("/clubs").json()["clubs"]
    assert [c["club_code"] for c in listing] == ["CODE", "MUSIC", "ROBO"]

    detail = client.get(f"/clubs/{clubs['CODE'].id}").json()
    assert detail["club"]["club_name"] == "Coding Club"
    assert [m["email"] for m in detail["members"]] == ["lead@campus.edu"]
    assert client.get("/clubs/9999").status_code == 404


def test_subscribe_unsubscribe(client, db_session, clubs):
    student = make_user(db_session, "s@campus.edu", role=UserRole.student)
    headers = auth_header(student)
    club_id = clubs["MUSIC"].id

    assert client.post(f"/clubs/{club_id}/subscribe", headers=headers).json()["subscribed"] is True
    # Subscribing twice keeps a single subscription
    client.post(f"/clubs/{club_id}/subscribe", headers=headers)
    assert client.get(f"/clubs/{club_id}/subscriber-count").json()["count"] == 1
    assert client.get(f"/clubs/{club_id}/subscription-status", headers=headers).json()["subscribed"] is True
    subs = client.get("/my-subscriptions", headers=headers).json()["subscriptions"]
    assert [s["club_code"] for s in subs] == ["MUSIC"]

    assert client.post(f"/clubs/{club_id}/unsubscribe", headers=headers).json()["subscribed"] is False
    assert client.get(f"/clubs/{club_id}/subscriber-count").json()["count"] == 0
    assert client.get(f"/clubs/{club_id}/subscription-status", headers=headers).json()["subscribed"] is False
    assert client.get("/my-subscriptions", headers=headers).json()["subscriptions"] == []

    assert client.post(f"/clubs/{club_id}/subscribe", headers=headers).json()["subscribed"] is True
    assert client.get(f"/clubs/{club_id}/subscriber-count").json()["count"] == 1
    assert client.post("/clubs/9999/subscribe", headers=headers).status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "ok"
