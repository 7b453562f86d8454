import pytest

from api_compliance.config import (
    ValidationMode,
    current_mode,
    get_settings,
    is_validation_enabled,
    resolve_mode,
    set_validation_enabled,
    validation_mode,
)
from api_compliance.decorators import GET
from api_compliance.errors import PathFormatError
from api_compliance.rules.naming import PathParamOrder, default_naming_rule


class TestValidationSwitch:
    def test_enabled_by_default(self):
        assert is_validation_enabled()
        assert current_mode() is ValidationMode.STRICT

    def test_toggle(self):
        set_validation_enabled(False)
        assert current_mode() is ValidationMode.OFF
        set_validation_enabled(True)
        assert is_validation_enabled()

    def test_context_manager_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with validation_mode(False):
                assert not is_validation_enabled()
                raise RuntimeError("boom")
        assert is_validation_enabled()

    def test_flip_only_affects_later_decorators(self):
        with validation_mode(False):
            lax = GET("users")
        assert callable(lax)
        with pytest.raises(PathFormatError):
            GET("users")


class TestResolveMode:
    @pytest.mark.parametrize("value, expected", [
        (True, ValidationMode.STRICT),
        (False, ValidationMode.OFF),
        ("off", ValidationMode.OFF),
        ("strict", ValidationMode.STRICT),
        (ValidationMode.OFF, ValidationMode.OFF),
    ])
    def test_explicit(self, value, expected):
        assert resolve_mode(value) is expected

    def test_none_follows_switch(self):
        assert resolve_mode(None) is ValidationMode.STRICT
        with validation_mode(False):
            assert resolve_mode(None) is ValidationMode.OFF

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            resolve_mode("lenient")


class TestSettingsFromEnvironment:
    def test_validation_disabled_by_env(self, monkeypatch):
        monkeypatch.setenv("API_COMPLIANCE_VALIDATION_ENABLED", "false")
        get_settings.cache_clear()
        assert not is_validation_enabled()

    def test_naming_rule_from_env(self, monkeypatch):
        monkeypatch.setenv("API_COMPLIANCE_STOP_WORDS", '["api", "internal"]')
        monkeypatch.setenv("API_COMPLIANCE_PATH_PARAM_ORDER", "template")
        get_settings.cache_clear()
        rule = default_naming_rule()
        assert rule.resource_name("/internal/api/users") == "Users"
        assert rule.path_param_order is PathParamOrder.TEMPLATE

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
