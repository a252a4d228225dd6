from task_tracker.config import settings

API = settings.API_PREFIX


def test_admin_sees_but_cannot_delete_foreign_task(client, make_user):
    """Сценарий: admin видит задачу пользователя, но удалить может только владелец"""
    _, admin_headers = make_user("A1", role="admin")

    # U1 регистрируется через API
    register = client.post(
        f"{API}/auth/register",
        json={"name": "U1", "email": "u1@example.com", "password": "password123"},
    )
    assert register.status_code == 201
    u1_headers = {"Authorization": f"Bearer {register.json()['token']}"}

    t1 = client.post(f"{API}/tasks", json={"title": "T1"}, headers=u1_headers)
    assert t1.status_code == 201
    t1_id = t1.json()["id"]

    listed = client.get(f"{API}/tasks", headers=admin_headers).json()
    assert [(t["id"], t["owner"]["name"]) for t in listed] == [(t1_id, "U1")]

    # admin может читать, но не менять
    assert client.get(f"{API}/tasks/{t1_id}", headers=admin_headers).status_code == 200
    assert client.put(f"{API}/tasks/{t1_id}", json={"status": "Done"}, headers=admin_headers).status_code == 403
    assert client.delete(f"{API}/tasks/{t1_id}", headers=admin_headers).status_code == 403

    assert client.delete(f"{API}/tasks/{t1_id}", headers=u1_headers).status_code == 200
    assert client.get(f"{API}/tasks/{t1_id}", headers=u1_headers).status_code == 404
    assert client.get(f"{API}/tasks", headers=admin_headers).json() == []


def test_full_auth_flow(client):
    """Регистрация, повторная регистрация, вход, профиль"""
    payload = {"name": "Flow", "email": "flow@example.com", "password": "securepassword123"}
    assert client.post(f"{API}/auth/register", json=payload).status_code == 201
    assert client.post(f"{API}/auth/register", json=payload).status_code == 409

    login = client.post(f"{API}/auth/login", json={"email": payload["email"], "password": payload["password"]})
    assert login.status_code == 200
    token = login.json()["token"]

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Flow"

    wrong = client.post(f"{API}/auth/login", json={"email": payload["email"], "password": "nope-nope"})
    assert wrong.status_code == 401


def test_multiple_users_isolated(client):
    """Несколько пользователей не видят задачи друг друга"""
    headers = []
    for i in range(3):
        response = client.post(
            f"{API}/auth/register",
            json={"name": f"user{i}", "email": f"user{i}@example.com", "password": f"password{i}"},
        )
        assert response.status_code == 201
        h = {"Authorization": f"Bearer {response.json()['token']}"}
        client.post(f"{API}/tasks", json={"title": f"task of user{i}"}, headers=h)
        headers.append(h)

    for i, h in enumerate(headers):
        tasks = client.get(f"{API}/tasks", headers=h).json()
        assert [t["title"] for t in tasks] == [f"task of user{i}"]
