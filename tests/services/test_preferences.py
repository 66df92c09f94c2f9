"""Tests for the persisted onboarding flag."""

from dreamteller.services.preferences import ClientPreferences, resolve_root_screen


def test_onboarding_flag_defaults_false_and_persists(tmp_path):
    path = tmp_path / "nested" / "preferences.json"
    prefs = ClientPreferences(path)
    assert prefs.has_seen_onboarding is False

    prefs.mark_onboarding_seen()

    assert ClientPreferences(path).has_seen_onboarding is True


def test_unreadable_file_is_ignored(tmp_path):
    path = tmp_path / "preferences.json"
    path.write_text("{not json")
    assert ClientPreferences(path).has_seen_onboarding is False


def test_resolve_root_screen(tmp_path):
    prefs = ClientPreferences(tmp_path / "preferences.json")
    assert resolve_root_screen(False, prefs) == "onboarding"
    prefs.set_has_seen_onboarding(True)
    assert resolve_root_screen(False, prefs) == "login"
    assert resolve_root_screen(True, prefs) == "main"
