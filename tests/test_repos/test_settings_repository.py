"""Unit tests for seriee_service.repos.settings_repository."""


class TestSettingsRepository:
    """Tests for SettingsRepository."""

    def test_get_missing_returns_default(self, settings_repository):
        assert settings_repository.get('missing') is None
        assert settings_repository.get('missing', default='x') == 'x'

    def test_set_and_get(self, settings_repository):
        # Act
        settings_repository.set('app_version_code', '2.0.0')

        # Assert
        assert settings_repository.get('app_version_code') == '2.0.0'

    def test_set_overwrites(self, settings_repository):
        # Arrange
        settings_repository.set('app_version_code', '2.0.0')

        # Act
        result = settings_repository.set('app_version_code', '2.1.0')

        # Assert
        assert result.value == '2.1.0'
        assert settings_repository.get('app_version_code') == '2.1.0'

    def test_delete(self, settings_repository):
        # Arrange
        settings_repository.set('key', 'value')

        # Act & Assert
        assert settings_repository.delete('key') is True
        assert settings_repository.get('key') is None
        assert settings_repository.delete('key') is False
