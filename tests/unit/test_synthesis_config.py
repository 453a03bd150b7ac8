# pylint: disable=missing-module-docstring,missing-function-docstring

from orchestrator.synthesis_config import SynthesisConfig, apply_tts_update

from fakes import make_catalog


CURRENT = SynthesisConfig(service="openai", voice="alloy", model="tts-1")


def test_valid_voice_is_applied():
    new, ignored = apply_tts_update(CURRENT, {"voice": "nova"}, make_catalog())

    assert new == SynthesisConfig(service="openai", voice="nova", model="tts-1")
    assert ignored == ()


def test_unknown_voice_and_model_are_ignored():
    new, ignored = apply_tts_update(
        CURRENT, {"voice": "darth", "model": "tts-9"}, make_catalog()
    )

    assert new == CURRENT
    assert set(ignored) == {"voice", "model"}


def test_unknown_service_is_ignored_but_valid_fields_still_apply():
    new, ignored = apply_tts_update(
        CURRENT, {"service": "nope", "model": "tts-1-hd"}, make_catalog()
    )

    assert new.service == "openai"
    assert new.model == "tts-1-hd"
    assert ignored == ("service",)


def test_switching_service_resets_to_provider_defaults():
    new, ignored = apply_tts_update(CURRENT, {"service": "speechmatics"}, make_catalog())

    assert new == SynthesisConfig(service="speechmatics", voice="sarah", model=None)
    assert ignored == ()


def test_switching_service_with_voice_for_new_provider():
    new, _ = apply_tts_update(
        CURRENT, {"service": "speechmatics", "voice": "theo"}, make_catalog()
    )

    assert new == SynthesisConfig(service="speechmatics", voice="theo", model=None)


def test_non_string_values_and_unknown_keys_are_ignored():
    new, ignored = apply_tts_update(
        CURRENT, {"voice": 3, "service": None, "speed": 2}, make_catalog()
    )

    assert new == CURRENT
    assert set(ignored) == {"voice", "service", "speed"}


def test_update_never_mutates_current():
    apply_tts_update(CURRENT, {"voice": "nova"}, make_catalog())
    assert CURRENT.voice == "alloy"


def test_catalog_resolve_fills_defaults():
    catalog = make_catalog()

    resolved = catalog.resolve(SynthesisConfig(service="openai"))
    assert resolved == SynthesisConfig(service="openai", voice="alloy", model="tts-1")

    unknown = SynthesisConfig(service="mystery", voice="x")
    assert catalog.resolve(unknown) is unknown


def test_catalog_describe_lists_every_provider():
    described = make_catalog().describe()

    assert set(described) == {"openai", "speechmatics"}
    assert described["speechmatics"]["voices"] == ["sarah", "theo"]
    assert described["openai"]["default_model"] == "tts-1"
