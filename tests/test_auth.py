from unittest.mock import patch

from task_tracker.config import settings

API = settings.API_PREFIX


def register(client, **overrides):
    payload = {"name": "Test User", "email": "test@example.com", "password": "password123", **overrides}
    return client.post(f"{API}/auth/register", json=payload)


def test_register_user_success(client):
    """Тест успешной регистрации пользователя"""
    response = register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["token"]
    assert data["user"]["email"] == "test@example.com"
    assert data["user"]["name"] == "Test User"
    assert data["user"]["role"] == "user"
    assert "id" in data["user"]
    assert "createdAt" in data["user"]
    assert "password" not in data["user"]
    assert "passwordHash" not in data["user"]


def test_register_user_duplicate(client):
    """Тест регистрации с существующим email"""
    assert register(client).status_code == 201
    response = register(client, name="Someone Else")
    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered"


def test_register_user_invalid_email(client):
    """Тест регистрации с невалидным email"""
    response = register(client, email="invalid-email")
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation failed"


def test_register_user_short_password(client):
    """Пароль из 5 символов отклоняется с 400"""
    response = register(client, password="12345")
    assert response.status_code == 400
    fields = [e["field"] for e in response.json()["errors"]]
    assert "password" in fields


def test_register_user_missing_name(client):
    """Имя обязательно"""
    response = client.post(f"{API}/auth/register", json={"email": "a@example.com", "password": "password123"})
    assert response.status_code == 400


def test_register_blank_name(client):
    """Имя из пробелов отклоняется на уровне сервиса"""
    response = register(client, name="   ")
    assert response.status_code == 400
    assert response.json() == {
        "detail": "Validation failed",
        "errors": [{"field": "name", "message": "Name required"}],
    }


def test_register_invalidates_stats_cache(client):
    """Регистрация сбрасывает кэш статистики пользователей"""
    with patch("task_tracker.interfaces.http.routers.auth.delete_cache") as mock_delete:
        assert register(client).status_code == 201
    mock_delete.assert_called_once_with("admin:stats")


def test_register_admin_role_disabled(client):
    """Самостоятельная регистрация admin запрещена по умолчанию"""
    response = register(client, role="admin")
    assert response.status_code == 403


def test_register_unknown_role(client):
    """Неизвестная роль: 400"""
    assert register(client, role="superuser").status_code == 400


def test_login_success(client):
    """Тест успешного входа"""
    user_id = register(client).json()["user"]["id"]
    response = client.post(f"{API}/auth/login", json={"email": "test@example.com", "password": "password123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["id"] == user_id


def test_login_invalid_credentials_same_shape(client):
    """Неверный пароль и несуществующий email неотличимы"""
    register(client)
    wrong_password = client.post(f"{API}/auth/login", json={"email": "test@example.com", "password": "wrongpass"})
    unknown = client.post(f"{API}/auth/login", json={"email": "nobody@example.com", "password": "password123"})
    assert wrong_password.status_code == 401
    assert unknown.status_code == 401
    assert wrong_password.json() == unknown.json() == {"detail": "Invalid credentials"}


def test_me_endpoint_success(client):
    """Тест получения информации о текущем пользователе"""
    token = register(client).json()["token"]
    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "test@example.com"


def test_me_endpoint_invalid_token(client):
    """Тест получения информации с невалидным токеном"""
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer invalid_token"})
    assert response.status_code == 401


def test_me_endpoint_no_token(client):
    """Без заголовка Authorization: 401 и WWW-Authenticate"""
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_token_of_deleted_user_is_rejected(client, make_user):
    """Токен удалённого пользователя больше не принимается"""
    _, admin_headers = make_user("Root", role="admin")
    user, headers = make_user("Victim")
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 200

    assert client.delete(f"{API}/admin/users/{user.id}", headers=admin_headers).status_code == 200
    response = client.get(f"{API}/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "User no longer exists"


def test_health(client):
    """Тест health endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_metrics_endpoint(client):
    """Тест endpoint метрик"""
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text
