"""
Tests for per-language card profiles
"""
import pytest

from allergy_card.utils.i18n import LANGUAGE_PROFILES, get_allergen_label, get_profile


@pytest.mark.parametrize("code", ["en", "fr", "es", "pt", "zh"])
def test_every_language_has_complete_profile(code):
    profile = get_profile(code)
    assert profile.code == code
    assert profile.template == f"template-{code}.png"
    assert profile.emergency_label
    assert profile.subject
    assert profile.greeting("Jo")


def test_unknown_language_gets_english():
    assert get_profile("de") is LANGUAGE_PROFILES["en"]
    assert get_profile(None) is LANGUAGE_PROFILES["en"]


def test_french_profile():
    profile = get_profile("fr")
    assert profile.subject == "Votre carte d’allergies"
    assert profile.emergency_label == "Contact d’urgence :"
    assert profile.greeting("Jo") == "Bonjour Jo, votre carte d’allergies est prête."


def test_greeting_without_name():
    assert get_profile("en").greeting("") == "Hi there, your allergy card is ready."
    assert get_profile("es").greeting(None) == "Hola, tu tarjeta de alergias está lista."
    assert get_profile("zh").greeting("Jo") == "您的过敏卡已生成。"


def test_profiles_are_read_only():
    with pytest.raises(TypeError):
        LANGUAGE_PROFILES["de"] = LANGUAGE_PROFILES["en"]


class TestEmergencyLine:

    def test_full_line(self):
        line = get_profile("en").emergency_line("Sam Lee", "555-0100")
        assert line == "Emergency Contact: Sam Lee 555-0100"

    def test_missing_phone_is_well_formed(self):
        line = get_profile("en").emergency_line("Sam Lee", "")
        assert line.strip() == "Emergency Contact: Sam Lee"
        for token in ("None", "null", "undefined", "(", ")"):
            assert token not in line

    def test_missing_everything(self):
        assert get_profile("pt").emergency_line(None, None).strip() == "Contacto de emergência:"


def test_template_path(tmp_path):
    assert get_profile("zh").template_path(tmp_path) == tmp_path / "template-zh.png"


def test_allergen_labels():
    assert get_allergen_label("tree_nuts", "fr") == "Fruits à coque"
    assert get_allergen_label("soy", "xx") == "Soy"
