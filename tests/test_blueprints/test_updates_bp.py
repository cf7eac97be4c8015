"""Integration tests for updates blueprint Azure Functions."""
import json
from unittest.mock import Mock, patch

import azure.functions as func

from seriee_service.blueprints.updates_bp import (
    apply_update,
    check_for_update,
    dismiss_update,
    health_check,
)
from seriee_service.services.update_service import (
    UpdateAction,
    UpdateCheck,
    UpdateResult,
    UpdateStatus,
)


def _request(params=None, body=None):
    mock_req = Mock(spec=func.HttpRequest)
    mock_req.route_params = {}
    mock_req.params = params or {}
    mock_req.get_json.return_value = body
    return mock_req


class TestCheckForUpdate:
    """Tests for check_for_update function."""

    @patch('seriee_service.blueprints.updates_bp.update_service')
    def test_check(self, mock_service):
        # Arrange
        mock_service.check_for_update.return_value = UpdateCheck(
            status=UpdateStatus.PROMPT, installed_version='2.0.0', remote_version='2.1.0',
            changelog=['Faster'], code_bundle_url='https://cdn.example.com/b.zip',
        )

        # Act
        response = check_for_update(_request({'has_used_app': 'true'}))

        # Assert
        assert response.status_code == 200
        body = json.loads(response.get_body())
        assert body['status'] == 'prompt'
        assert body['is_instant'] is True
        mock_service.check_for_update.assert_called_once_with(has_used_app=True)

    @patch('seriee_service.blueprints.updates_bp.update_service')
    def test_check_defaults_to_fresh_install(self, mock_service):
        mock_service.check_for_update.return_value = UpdateCheck(
            status=UpdateStatus.IDLE, installed_version='2.0.0'
        )

        check_for_update(_request())

        mock_service.check_for_update.assert_called_once_with(has_used_app=False)


class TestApplyUpdate:
    """Tests for apply_update function."""

    @patch('seriee_service.blueprints.updates_bp.update_service')
    def test_apply(self, mock_service):
        # Arrange
        mock_service.apply_update.return_value = UpdateResult(action=UpdateAction.RELOADED, version='2.1.0')
        body = {'status': 'prompt', 'installed_version': '2.0.0', 'remote_version': '2.1.0'}

        # Act
        response = apply_update(_request(body=body))

        # Assert
        assert response.status_code == 200
        assert json.loads(response.get_body())['action'] == 'reloaded'
        check = mock_service.apply_update.call_args[0][0]
        assert check.status == UpdateStatus.PROMPT
        assert check.remote_version == '2.1.0'

    def test_apply_bad_status(self):
        response = apply_update(_request(body={'status': 'bogus'}))

        assert response.status_code == 400

    def test_apply_missing_body(self):
        assert apply_update(_request(body=None)).status_code == 400


class TestDismissUpdate:
    """Tests for dismiss_update function."""

    @patch('seriee_service.blueprints.updates_bp.update_service')
    def test_dismiss(self, mock_service):
        mock_service.get_stored_version.return_value = '2.1.0'

        response = dismiss_update(_request(body={'status': 'prompt', 'remote_version': '2.1.0'}))

        assert response.status_code == 200
        assert json.loads(response.get_body()) == {'stored_version': '2.1.0'}
        mock_service.dismiss.assert_called_once()


class TestHealthCheck:
    """Tests for health_check function."""

    @patch('seriee_service.blueprints.updates_bp.update_service')
    def test_health_check(self, mock_service):
        mock_service.app_version = '2.0.0'

        response = health_check(_request())

        body = json.loads(response.get_body())
        assert response.status_code == 200
        assert body['status'] == 'healthy'
        assert body['service'] == 'seriee-service'
        assert body['app_version'] == '2.0.0'
