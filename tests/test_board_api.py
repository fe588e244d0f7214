from __future__ import annotations
from datetime import timedelta

import pytest

from extensions import db
from models import Comment, Post

URL = "/api/board"


@pytest.fixture()
def board(make_app, make_api):
    """Доска без кулдаунов: большинству тестов они мешают."""
    return make_api(make_app(POST_COOLDOWN_SECONDS=0, COMMENT_COOLDOWN_SECONDS=0))


def _post(api, headers, title="hello", content="world"):
    r = api.client.post(URL, json={"title": title, "content": content}, headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["postId"]


def _rewind(app, model, seconds):
    """Сдвигает created_at всех записей в прошлое (вместо sleep)."""
    with app.app_context():
        for row in db.session.query(model).all():
            row.created_at = row.created_at - timedelta(seconds=seconds)
        db.session.commit()


# ---------- posts ----------
def test_create_and_get_post(board):
    bob = board.account("bob")
    pid = _post(board, bob, "First", "Body")

    r = board.client.get(f"{URL}/{pid}", headers=bob)
    assert r.status_code == 200
    post = r.get_json()["post"]
    assert post["title"] == "First"
    assert post["authorId"] == "bob"
    assert post["authorEmail"] == "bob@example.com"
    assert post["authorRole"] == "user"
    assert post["isNotice"] is False


def test_every_read_counts_a_view(board):
    bob = board.account("bob")
    carol = board.account("carol")
    root = board.root()
    pid = _post(board, bob)

    # автор, чужой пользователь и superadmin: каждое чтение +1, без дедупликации
    readers = [bob, bob, carol, root, carol]
    views = [board.client.get(f"{URL}/{pid}", headers=h).get_json()["post"]["views"] for h in readers]
    assert views == [1, 2, 3, 4, 5]
    post = board.client.get(f"{URL}/{pid}", headers=root).get_json()["post"]
    assert post["views"] == len(readers) + 1


def test_get_missing_post(board):
    bob = board.account("bob")
    assert board.client.get(f"{URL}/999", headers=bob).status_code == 404
    r = board.client.get(f"{URL}/not-a-number", headers=bob)
    assert r.status_code == 404
    assert r.get_json()["success"] is False


def test_post_validation_and_auth(board):
    bob = board.account("bob")
    assert board.client.post(URL, json={"title": " ", "content": "x"}, headers=bob).status_code == 400
    assert board.client.post(URL, json={"title": "x"}, headers=bob).status_code == 400
    assert board.client.post(URL, json={"title": "x", "content": "y"}).status_code == 401


def test_pagination_newest_first(board):
    bob = board.account("bob")
    for i in range(12):
        _post(board, bob, f"p{i}")

    page1 = board.client.get(f"{URL}?page=1&limit=5", headers=bob).get_json()
    assert page1["total"] == 12
    assert page1["page"] == 1 and page1["limit"] == 5
    assert [p["title"] for p in page1["posts"]] == ["p11", "p10", "p9", "p8", "p7"]

    page3 = board.client.get(f"{URL}?page=3&limit=5", headers=bob).get_json()
    assert [p["title"] for p in page3["posts"]] == ["p1", "p0"]

    clamped = board.client.get(f"{URL}?limit=1000", headers=bob).get_json()
    assert clamped["limit"] == 100


def test_search_title_and_content(board):
    bob = board.account("bob")
    _post(board, bob, "Math exam", "room 101")
    _post(board, bob, "Lunch", "pizza, then MATH club")
    _post(board, bob, "100% done", "nothing")
    _post(board, bob, "Other", "text")

    found = board.client.get(f"{URL}?search=math", headers=bob).get_json()
    assert found["total"] == 2
    # % ищется буквально, а не как шаблон
    found = board.client.get(f"{URL}?search=%25", headers=bob).get_json()
    assert [p["title"] for p in found["posts"]] == ["100% done"]


def test_notices_pinned_on_first_page(board):
    bob = board.account("bob")
    root = board.root()
    notice_id = _post(board, root, "Maintenance", "tonight")
    for i in range(6):
        _post(board, bob, f"p{i}")

    page1 = board.client.get(f"{URL}?limit=5", headers=bob).get_json()
    assert page1["posts"][0]["id"] == notice_id
    assert page1["posts"][0]["isNotice"] is True
    assert page1["posts"][0]["authorRole"] == "superadmin"
    assert len(page1["posts"]) == 6
    assert page1["total"] == 7

    page2 = board.client.get(f"{URL}?page=2&limit=5", headers=bob).get_json()
    assert all(not p["isNotice"] for p in page2["posts"])
    assert [p["title"] for p in page2["posts"]] == ["p0"]


def test_notices_not_pinned_when_disabled(make_app, make_api):
    api = make_api(make_app(POST_COOLDOWN_SECONDS=0, BOARD_PIN_NOTICES=False))
    bob = api.account("bob")
    _post(api, api.root(), "Notice")
    _post(api, bob, "Newest")
    titles = [p["title"] for p in api.client.get(URL, headers=bob).get_json()["posts"]]
    assert titles == ["Newest", "Notice"]


def test_update_post_strict_moderation(board):
    bob = board.account("bob")
    carol = board.account("carol")
    admin = board.account("alice", role="admin")
    pid = _post(board, bob)
    body = {"title": "edited", "content": "new body"}

    assert board.client.put(f"{URL}/{pid}", json=body, headers=carol).status_code == 403
    assert board.client.put(f"{URL}/{pid}", json=body, headers=admin).status_code == 403
    assert board.client.put(f"{URL}/{pid}", json=body, headers=board.root()).status_code == 403
    assert board.client.put(f"{URL}/{pid}", json=body, headers=bob).status_code == 200
    post = board.client.get(f"{URL}/{pid}", headers=bob).get_json()["post"]
    assert post["title"] == "edited"
    assert board.client.put(f"{URL}/999", json=body, headers=bob).status_code == 404


def test_admin_moderation_mode(make_app, make_api):
    api = make_api(make_app(POST_COOLDOWN_SECONDS=0, BOARD_MODERATION="admin"))
    bob = api.account("bob")
    admin = api.account("alice", role="admin")
    pid = _post(api, bob)
    assert api.client.put(f"{URL}/{pid}", json={"title": "t", "content": "c"}, headers=admin).status_code == 200
    assert api.client.delete(f"{URL}/{pid}", headers=admin).status_code == 200


def test_delete_post_with_comments(board):
    bob = board.account("bob")
    carol = board.account("carol")
    pid = _post(board, bob)
    for text in ("one", "two"):
        board.client.post(f"{URL}/{pid}/comments", json={"content": text}, headers=carol)

    assert board.client.delete(f"{URL}/{pid}", headers=carol).status_code == 403
    assert board.client.delete(f"{URL}/{pid}", headers=bob).status_code == 200
    assert board.client.get(f"{URL}/{pid}", headers=bob).status_code == 404
    # комментарии удалены вместе с постом
    assert board.client.get(f"{URL}/{pid}/comments", headers=bob).get_json()["comments"] == []
    app = board.client.application
    with app.app_context():
        assert db.session.query(Comment).count() == 0


def test_superadmin_deletes_any_post(board):
    bob = board.account("bob")
    pid = _post(board, bob)
    assert board.client.delete(f"{URL}/{pid}", headers=board.root()).status_code == 200


# ---------- comments ----------
def test_comments_oldest_first(board):
    bob = board.account("bob")
    carol = board.account("carol")
    pid = _post(board, bob)
    r = board.client.post(f"{URL}/{pid}/comments", json={"content": "first"}, headers=carol)
    assert r.status_code == 201
    board.client.post(f"{URL}/{pid}/comments", json={"content": "second"}, headers=bob)

    comments = board.client.get(f"{URL}/{pid}/comments", headers=bob).get_json()["comments"]
    assert [c["content"] for c in comments] == ["first", "second"]
    assert comments[0]["authorId"] == "carol"
    assert comments[0]["postId"] == pid


def test_comment_on_missing_post(board):
    bob = board.account("bob")
    assert board.client.post(f"{URL}/999/comments", json={"content": "x"}, headers=bob).status_code == 404


def test_no_comments_on_notices(board):
    bob = board.account("bob")
    root = board.root()
    pid = _post(board, root, "Notice")
    assert board.client.post(f"{URL}/{pid}/comments", json={"content": "x"}, headers=bob).status_code == 403
    assert board.client.post(f"{URL}/{pid}/comments", json={"content": "x"}, headers=root).status_code == 403


def test_superadmin_comments_on_notice_when_exempt(make_app, make_api):
    api = make_api(make_app(NOTICE_COMMENTS_SUPERADMIN_EXEMPT=True))
    root = api.root()
    pid = _post(api, root, "Notice")
    assert api.client.post(f"{URL}/{pid}/comments", json={"content": "x"}, headers=root).status_code == 201


def test_delete_comment(board):
    bob = board.account("bob")
    carol = board.account("carol")
    pid = _post(board, bob)
    cid = board.client.post(f"{URL}/{pid}/comments", json={"content": "x"}, headers=carol).get_json()["commentId"]
    cid2 = board.client.post(f"{URL}/{pid}/comments", json={"content": "y"}, headers=carol).get_json()["commentId"]

    # автор поста чужие комментарии не удаляет
    assert board.client.delete(f"{URL}/comments/{cid}", headers=bob).status_code == 403
    assert board.client.delete(f"{URL}/comments/{cid}", headers=carol).status_code == 200
    assert board.client.delete(f"{URL}/comments/{cid}", headers=carol).status_code == 404
    assert board.client.delete(f"{URL}/comments/{cid2}", headers=board.root()).status_code == 200


# ---------- кулдауны ----------
def test_post_cooldown(make_app, make_api):
    app = make_app(POST_COOLDOWN_SECONDS=60)
    api = make_api(app)
    bob = api.account("bob")
    _post(api, bob)

    r = api.client.post(URL, json={"title": "again", "content": "x"}, headers=bob)
    assert r.status_code == 429
    assert r.get_json()["message"] == "You can only write one post every 60 seconds."

    _rewind(app, Post, 61)
    _post(api, bob, "again")


def test_comment_cooldown(make_app, make_api):
    app = make_app(POST_COOLDOWN_SECONDS=0, COMMENT_COOLDOWN_SECONDS=60)
    api = make_api(app)
    bob = api.account("bob")
    pid = _post(api, bob)

    assert api.client.post(f"{URL}/{pid}/comments", json={"content": "a"}, headers=bob).status_code == 201
    assert api.client.post(f"{URL}/{pid}/comments", json={"content": "b"}, headers=bob).status_code == 429
    _rewind(app, Comment, 61)
    assert api.client.post(f"{URL}/{pid}/comments", json={"content": "b"}, headers=bob).status_code == 201


def test_superadmin_has_no_cooldown(make_app, make_api):
    api = make_api(make_app(POST_COOLDOWN_SECONDS=60))
    root = api.root()
    _post(api, root, "n1")
    _post(api, root, "n2")


# ---------- доступ пользователей ----------
def test_block_user_role(make_app, make_api):
    api = make_api(make_app(BOARD_BLOCK_USER_ROLE=True))
    bob = api.account("bob")
    admin = api.account("alice", role="admin")
    assert api.client.get(URL, headers=bob).status_code == 403
    assert api.client.post(URL, json={"title": "t", "content": "c"}, headers=bob).status_code == 403
    assert api.client.get(URL, headers=admin).status_code == 200
