import pytest

from form_store import FormNotFoundError, FormStore


def test_save_and_get_form(quote_config):
    store = FormStore()
    record = store.save_form(quote_config, ["a travel quote form"])

    fetched = store.get_form(record.id)

    assert fetched.id == record.id == 1
    assert fetched.prompt_history == ["a travel quote form"]
    assert fetched.icon_mode == "lucide"
    assert [step.type for step in fetched.config.steps] == ["tiles", "documentUpload", "documentInfo"]


def test_get_form_returns_copies(quote_config):
    store = FormStore()
    record = store.save_form(quote_config)

    fetched = store.get_form(record.id)
    fetched.config.steps[0].title = "Changed"

    assert store.get_form(record.id).config.steps[0].title == "Use case"


def test_missing_form_raises():
    with pytest.raises(FormNotFoundError):
        FormStore().get_form(1)


def test_update_form_keeps_history_when_not_given(quote_config):
    store = FormStore()
    record = store.save_form(quote_config, ["first"], "emoji")

    updated = store.update_form(record.id, quote_config)

    assert updated.prompt_history == ["first"]
    assert updated.icon_mode == "emoji"
    assert store.set_icon_mode(record.id, "none").icon_mode == "none"


def test_session_numbers_count_per_form(quote_config):
    store = FormStore()
    first = store.save_form(quote_config)
    second = store.save_form(quote_config)

    a = store.create_session(first.id)
    b = store.create_session(first.id)
    c = store.create_session(second.id)

    assert (a["sessionNo"], b["sessionNo"], c["sessionNo"]) == (1, 2, 1)
    assert len({a["sessionId"], b["sessionId"], c["sessionId"]}) == 3
    assert store.get_temp_response(a["sessionId"]) == {}

    with pytest.raises(FormNotFoundError):
        store.create_session(42)
