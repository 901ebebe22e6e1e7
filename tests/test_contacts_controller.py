"""Tests for ContactsController: tab transitions, submit, delete, notes."""
import logging

import pytest

from app.poolcrm.modules.contacts.service import ContactsController
from app.poolcrm.modules.contacts.state import ContactForm
from app.poolcrm.modules.keap.client import KeapAPIError


@pytest.fixture()
def ctrl(fake_keap):
    c = ContactsController(fake_keap)
    c.load_contacts()
    fake_keap.calls.clear()
    return c


class TestLoading:
    def test_load_contacts_uses_single_page_of_100(self, fake_keap):
        c = ContactsController(fake_keap)
        assert c.load_contacts() is True
        assert fake_keap.calls == [("list_contacts", 100)]
        assert [x.id for x in c.state.contacts] == [1, 2, 3]
        assert c.state.loading is False

    def test_load_contacts_error_sets_banner(self, fake_keap):
        fake_keap.fail["list_contacts"] = KeapAPIError(503, "unavailable")
        c = ContactsController(fake_keap)
        assert c.load_contacts() is False
        assert "503" in c.state.error

    def test_notes_failure_is_logged_not_shown(self, ctrl, fake_keap, caplog):
        fake_keap.fail["list_notes"] = KeapAPIError(500, "boom")
        with caplog.at_level(logging.WARNING):
            assert ctrl.open_edit(ctrl.state.contacts[0]) is True
        assert ctrl.state.tab == "edit"
        assert ctrl.state.notes == []
        assert ctrl.state.error is None
        assert "Failed to load notes" in caplog.text

    def test_search_filters_locally(self, ctrl, fake_keap):
        ctrl.search("BOB")
        assert [c.id for c in ctrl.filtered_contacts] == [2]
        assert fake_keap.calls == []


class TestTransitions:
    def test_open_add_clears_form(self, ctrl):
        ctrl.state.form = ContactForm(given_name="stale")
        ctrl.open_add()
        assert ctrl.state.tab == "add"
        assert ctrl.state.form == ContactForm()

    def test_open_edit_populates_form_and_notes(self, ctrl, fake_keap):
        assert ctrl.open_edit(ctrl.state.contacts[0])
        st = ctrl.state
        assert st.tab == "edit"
        assert st.form.given_name == "Jane"
        assert st.form.email == "jane@x.com"
        assert [n.body for n in st.notes] == ["Chlorine low"]
        assert fake_keap.calls == [("list_notes", 1)]

    def test_open_edit_by_id_fetches_contact(self, ctrl, fake_keap):
        assert ctrl.open_edit(2)
        assert fake_keap.names() == ["get_contact", "list_notes"]
        assert ctrl.state.form.family_name == "Marley"

    def test_open_edit_unknown_id(self, ctrl):
        assert ctrl.open_edit(404) is False
        assert "404" in ctrl.state.error
        assert ctrl.state.tab == "contacts"

    def test_cancel_discards_unsaved_input(self, ctrl):
        ctrl.open_edit(ctrl.state.contacts[0])
        ctrl.state.form.notes = "unsaved"
        ctrl.state.new_note = "also unsaved"
        ctrl.cancel()
        assert ctrl.state.tab == "contacts"
        assert ctrl.state.form == ContactForm()
        assert ctrl.state.new_note == ""
        assert ctrl.state.selected_contact is None


class TestSubmit:
    def test_add_creates_contact_then_note(self, ctrl, fake_keap):
        ctrl.open_add()
        ok = ctrl.submit(
            {
                "given_name": "Jane",
                "family_name": "Doe",
                "email": "jane@x.com",
                "phone": "555-1234",
                "notes": "Weekly cleaning",
            }
        )
        assert ok is True
        assert fake_keap.names() == ["create_contact", "create_note", "list_contacts"]
        _, payload = fake_keap.calls[0]
        assert payload["email_addresses"] == [{"email": "jane@x.com", "field": "EMAIL1"}]
        assert payload["phone_numbers"] == [{"number": "555-1234", "field": "PHONE1"}]
        assert payload["addresses"] == []
        _, note = fake_keap.calls[1]
        new_id = fake_keap.contacts[-1].id
        assert note == {"contact_id": new_id, "title": "Pool Service Notes", "body": "Weekly cleaning"}
        assert ctrl.state.tab == "contacts"
        assert ctrl.state.form == ContactForm()

    def test_add_without_notes_skips_note(self, ctrl, fake_keap):
        ctrl.open_add()
        assert ctrl.submit(ContactForm(given_name="A", family_name="B"))
        assert fake_keap.names() == ["create_contact", "list_contacts"]

    def test_edit_clearing_email_sends_empty_list(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        form = ctrl.state.form
        form.email = ""
        assert ctrl.submit(form, reload=False)
        name, contact_id, payload = fake_keap.calls[0]
        assert (name, contact_id) == ("update_contact", 1)
        assert "email_addresses" in payload
        assert payload["email_addresses"] == []

    def test_edit_with_notes_creates_note_for_selected_id(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[1])
        fake_keap.calls.clear()
        ctrl.state.form.notes = "Filter replaced"
        assert ctrl.submit(reload=False)
        assert fake_keap.names() == ["update_contact", "create_note"]
        assert fake_keap.calls[1][1]["contact_id"] == 2

    def test_failure_keeps_tab_and_form(self, ctrl, fake_keap):
        fake_keap.fail["create_contact"] = KeapAPIError(500, "server error")
        ctrl.open_add()
        form = ContactForm(given_name="Jane", family_name="Doe", notes="Weekly")
        assert ctrl.submit(form) is False
        assert "500" in ctrl.state.error
        assert ctrl.state.tab == "add"
        assert ctrl.state.form == form
        assert fake_keap.names() == ["create_contact"]

    def test_note_failure_does_not_roll_back_contact(self, ctrl, fake_keap):
        fake_keap.fail["create_note"] = KeapAPIError(400, "bad note")
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        ctrl.state.form.notes = "x"
        assert ctrl.submit() is False
        assert fake_keap.names() == ["update_contact", "create_note"]
        assert ctrl.state.tab == "edit"
        assert "400" in ctrl.state.error

    def test_required_fields_checked_before_any_call(self, ctrl, fake_keap):
        ctrl.open_add()
        assert ctrl.submit({"given_name": "Jane"}) is False
        assert fake_keap.calls == []
        assert "Last name" in ctrl.state.error


class TestDelete:
    def test_confirmed_delete_then_reload(self, ctrl, fake_keap):
        assert ctrl.delete_contact(2, confirmed=True)
        assert fake_keap.calls == [("delete_contact", 2), ("list_contacts", 100)]
        assert [c.id for c in ctrl.state.contacts] == [1, 3]

    def test_declined_makes_no_calls(self, ctrl, fake_keap):
        assert ctrl.delete_contact(2, confirmed=False) is False
        assert fake_keap.calls == []

    def test_delete_failure_no_local_removal(self, ctrl, fake_keap):
        fake_keap.fail["delete_contact"] = KeapAPIError(500, "boom")
        assert ctrl.delete_contact(2, confirmed=True) is False
        assert "500" in ctrl.state.error
        assert [c.id for c in ctrl.state.contacts] == [1, 2, 3]
        assert fake_keap.names() == ["delete_contact"]


class TestNotes:
    def test_add_note_clears_input_and_reloads(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        assert ctrl.add_note("Added acid")
        assert fake_keap.names() == ["create_note", "list_notes"]
        assert ctrl.state.new_note == ""
        assert [n.body for n in ctrl.state.notes] == ["Chlorine low", "Added acid"]

    def test_blank_note_is_noop(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        assert ctrl.add_note("   ") is False
        assert fake_keap.calls == []

    def test_add_note_outside_edit_tab_is_noop(self, ctrl, fake_keap):
        assert ctrl.add_note("hello") is False
        assert fake_keap.calls == []

    def test_update_and_delete_note(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        assert ctrl.update_note(50, "Chlorine fixed")
        assert ctrl.delete_note(50)
        assert fake_keap.names() == ["update_note", "list_notes", "delete_note", "list_notes"]
        assert fake_keap.calls[0][2] == {"body": "Chlorine fixed"}
        assert ctrl.state.notes == []

    def test_update_note_sends_text_as_typed(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        assert ctrl.update_note(50, "  pH 7.4 \n", reload=False)
        assert fake_keap.calls == [("update_note", 50, {"body": "  pH 7.4 \n"})]

    def test_blank_note_update_is_noop(self, ctrl, fake_keap):
        ctrl.open_edit(ctrl.state.contacts[0])
        fake_keap.calls.clear()
        assert ctrl.update_note(50, "  ") is False
        assert fake_keap.calls == []

    def test_add_note_failure_shows_banner(self, ctrl, fake_keap):
        fake_keap.fail["create_note"] = KeapAPIError(500, "boom")
        ctrl.open_edit(ctrl.state.contacts[0])
        assert ctrl.add_note("x") is False
        assert "500" in ctrl.state.error
        assert ctrl.state.new_note == "x"


def test_dismiss_error(ctrl):
    ctrl.state.error = "oops"
    ctrl.dismiss_error()
    assert ctrl.state.error is None
