import pytest
from pydantic import ValidationError

from script_bundler import BuildSettings


def test_defaults():
    settings = BuildSettings()
    assert settings.minify_code is False
    assert settings.preserve_important_comments is True


def test_settings_are_immutable():
    settings = BuildSettings()
    with pytest.raises(ValidationError):
        settings.minify_code = True


def test_unknown_options_are_rejected():
    with pytest.raises(ValidationError):
        BuildSettings(minify_code=True, obfuscate=True)


def test_from_env_reads_prefixed_variables():
    settings = BuildSettings.from_env(
        {"BUNDLE_MINIFY_CODE": "true", "BUNDLE_PRESERVE_IMPORTANT_COMMENTS": "0", "MINIFY_CODE": "false"}
    )
    assert settings.minify_code is True
    assert settings.preserve_important_comments is False


def test_from_env_falls_back_to_defaults():
    assert BuildSettings.from_env({}) == BuildSettings()


def test_from_env_rejects_garbage():
    with pytest.raises(ValidationError):
        BuildSettings.from_env({"BUNDLE_MINIFY_CODE": "maybe"})
