import pytest
from fastapi.testclient import TestClient
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from imagecraft.api.main import create_app
from imagecraft.api.deps import get_image_cleanup_service, get_image_service
from imagecraft.core.exceptions import ImageAccessDeniedError, ImageNotFoundError
from imagecraft.models.image import ImageCleanupResponse


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


@pytest.fixture
def mock_image_service():
    return AsyncMock()


@pytest.fixture
def mock_cleanup_service():
    return AsyncMock()


def settings_with_secret(secret):
    return SimpleNamespace(generation=SimpleNamespace(cron_secret=secret))


def test_get_image_redirects_to_presigned_url(client, mock_image_service):
    image_id = uuid4()
    user_id = uuid4()
    mock_image_service.get_download_url.return_value = "https://s3.example/signed"
    client.app.dependency_overrides[get_image_service] = lambda: mock_image_service

    response = client.get(
        f"/api/v1/images/{image_id}",
        headers={"X-User-Id": str(user_id)},
        follow_redirects=False,
    )

    assert response.status_code == 307
    assert response.headers["location"] == "https://s3.example/signed"
    mock_image_service.get_download_url.assert_awaited_once_with(image_id, user_id)


def test_get_image_not_found(client, mock_image_service):
    image_id = uuid4()
    mock_image_service.get_download_url.side_effect = ImageNotFoundError(str(image_id))
    client.app.dependency_overrides[get_image_service] = lambda: mock_image_service

    response = client.get(f"/api/v1/images/{image_id}", follow_redirects=False)

    assert response.status_code == 404


def test_get_image_of_other_user_is_forbidden(client, mock_image_service):
    image_id = uuid4()
    mock_image_service.get_download_url.side_effect = ImageAccessDeniedError(str(image_id))
    client.app.dependency_overrides[get_image_service] = lambda: mock_image_service

    response = client.get(
        f"/api/v1/images/{image_id}",
        headers={"X-User-Id": str(uuid4())},
        follow_redirects=False,
    )

    assert response.status_code == 403


def test_cleanup_with_valid_secret(client, mock_cleanup_service):
    mock_cleanup_service.purge_expired.return_value = ImageCleanupResponse(
        expired=3, deleted=3, blob_delete_failures=1
    )
    client.app.dependency_overrides[get_image_cleanup_service] = lambda: mock_cleanup_service

    with patch(
        "imagecraft.api.deps.dependencies.get_settings",
        return_value=settings_with_secret("s3cret"),
    ):
        response = client.post(
            "/api/v1/images/cleanup", headers={"Authorization": "Bearer s3cret"}
        )

    assert response.status_code == 200
    assert response.json() == {"expired": 3, "deleted": 3, "blob_delete_failures": 1}


def test_cleanup_with_wrong_secret_is_unauthorized(client, mock_cleanup_service):
    client.app.dependency_overrides[get_image_cleanup_service] = lambda: mock_cleanup_service

    with patch(
        "imagecraft.api.deps.dependencies.get_settings",
        return_value=settings_with_secret("s3cret"),
    ):
        response = client.post("/api/v1/images/cleanup", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    mock_cleanup_service.purge_expired.assert_not_awaited()


def test_cleanup_without_configured_secret_is_unavailable(client, mock_cleanup_service):
    client.app.dependency_overrides[get_image_cleanup_service] = lambda: mock_cleanup_service

    with patch(
        "imagecraft.api.deps.dependencies.get_settings",
        return_value=settings_with_secret(None),
    ):
        response = client.post("/api/v1/images/cleanup", headers={"Authorization": "Bearer x"})

    assert response.status_code == 503
