"""
CONTACTS CONTROLLER
===================

Every user action on the contacts page maps to one method here. Each method
mutates a `ViewState` and/or calls Keap; the template is a pure projection of
that state.

Tab transitions:

From      | To        | Trigger
----------|-----------|---------------------------------------------
contacts  | add       | open_add() - blank form
contacts  | edit      | open_edit() - form from first email/phone/address, notes loaded
add/edit  | contacts  | cancel() or successful submit() - form discarded

Errors from Keap are caught here and land in `state.error` (the banner).
Notes loading is the exception: failures are logged and the notes panel
simply stays empty.

Multi-step writes (contact, then note) are NOT atomic: if the note fails
after the contact was saved, the contact change stays.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.poolcrm.constants import DEFAULT_PAGE_SIZE, SERVICE_NOTE_TITLE
from app.poolcrm.modules.contacts.state import ContactForm, ViewState, filter_contacts
from app.poolcrm.modules.keap.client import KeapAPIError, KeapClient
from app.poolcrm.modules.keap.models import Contact, Note

logger = logging.getLogger(__name__)


def _error_message(e: Exception, fallback: str) -> str:
    return str(e) or fallback


class ContactsController:
    def __init__(self, client: KeapClient, state: ViewState | None = None, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.client = client
        self.state = state or ViewState()
        self.page_size = page_size

    @property
    def filtered_contacts(self) -> list[Contact]:
        return filter_contacts(self.state.contacts, self.state.search_term)

    def search(self, term: str | None) -> None:
        self.state.search_term = term or ""

    def dismiss_error(self) -> None:
        self.state.error = None

    # -- loading -----------------------------------------------------------

    def load_contacts(self) -> bool:
        st = self.state
        st.loading = True
        st.error = None
        try:
            page = self.client.list_contacts(page_size=self.page_size)
            st.contacts = page.contacts
            return True
        except KeapAPIError as e:
            st.error = _error_message(e, "Failed to load contacts")
            return False
        finally:
            st.loading = False

    def load_notes(self, contact_id: int) -> None:
        try:
            self.state.notes = self.client.list_notes(contact_id)
        except KeapAPIError as e:
            logger.warning("Failed to load notes for contact_id=%s: %s", contact_id, e)

    # -- tab transitions ---------------------------------------------------

    def open_contacts(self) -> None:
        self.state.reset_form()
        self.state.tab = "contacts"

    def open_add(self) -> None:
        self.state.reset_form()
        self.state.tab = "add"

    def open_edit(self, contact: Contact | int) -> bool:
        """Select a contact (or fetch one by id) and switch to the edit tab."""
        st = self.state
        if not isinstance(contact, Contact):
            try:
                contact = self.client.get_contact(int(contact))
            except KeapAPIError as e:
                st.error = _error_message(e, "Failed to load contact")
                return False
        st.selected_contact = contact
        st.form = ContactForm.from_contact(contact)
        st.new_note = ""
        st.notes = []
        if contact.id:
            self.load_notes(contact.id)
        st.tab = "edit"
        return True

    def cancel(self) -> None:
        # Unsaved form and note text are dropped without asking.
        self.open_contacts()

    # -- writes ------------------------------------------------------------

    def submit(self, form: ContactForm | Mapping[str, Any] | None = None, *, reload: bool = True) -> bool:
        """
        Create or update the contact from the form, then add the pending note.

        Returns True on success (state is back on the contacts tab with a
        fresh list). On failure the tab and form are left as submitted.
        """
        st = self.state
        if form is not None:
            st.form = form if isinstance(form, ContactForm) else ContactForm.from_mapping(form)

        missing = st.form.missing_required()
        if missing:
            st.error = f"Required: {', '.join(missing)}"
            return False

        st.loading = True
        st.error = None
        try:
            payload = st.form.to_contact()
            selected = st.selected_contact
            if st.tab == "edit" and selected is not None and selected.id:
                self.client.update_contact(selected.id, payload)
                contact_id: int | None = selected.id
                logger.info("Updated contact id=%s", contact_id)
            else:
                created = self.client.create_contact(payload)
                contact_id = created.id
                logger.info("Created contact id=%s", contact_id)

            if st.form.notes and contact_id:
                self.client.create_note(Note(contact_id=contact_id, title=SERVICE_NOTE_TITLE, body=st.form.notes))
        except KeapAPIError as e:
            st.error = _error_message(e, "Failed to save contact")
            return False
        finally:
            st.loading = False

        self.open_contacts()
        if reload:
            self.load_contacts()
        return True

    def delete_contact(self, contact_id: int, *, confirmed: bool, reload: bool = True) -> bool:
        if not confirmed:
            return False
        st = self.state
        st.loading = True
        try:
            self.client.delete_contact(contact_id)
            logger.info("Deleted contact id=%s", contact_id)
        except KeapAPIError as e:
            st.error = _error_message(e, "Failed to delete contact")
            return False
        finally:
            st.loading = False
        # No local removal: the list shown is whatever Keap returns now.
        if reload:
            self.load_contacts()
        return True

    # -- notes (edit tab) --------------------------------------------------

    def _selected_id(self) -> int | None:
        c = self.state.selected_contact
        if self.state.tab != "edit" or c is None:
            return None
        return c.id

    def add_note(self, text: str | None = None, *, reload: bool = True) -> bool:
        st = self.state
        if text is not None:
            st.new_note = text
        contact_id = self._selected_id()
        if not st.new_note.strip() or not contact_id:
            return False
        try:
            self.client.create_note(Note(contact_id=contact_id, title=SERVICE_NOTE_TITLE, body=st.new_note))
        except KeapAPIError as e:
            st.error = _error_message(e, "Failed to add note")
            return False
        st.new_note = ""
        if reload:
            self.load_notes(contact_id)
        return True

    def update_note(self, note_id: int, text: str, *, reload: bool = True) -> bool:
        st = self.state
        contact_id = self._selected_id()
        if not (text or "").strip() or not contact_id:
            return False
        try:
            self.client.update_note(note_id, {"body": text})
        except KeapAPIError as e:
            st.error = _error_message(e, "Failed to update note")
            return False
        if reload:
            self.load_notes(contact_id)
        return True

    def delete_note(self, note_id: int, *, reload: bool = True) -> bool:
        st = self.state
        contact_id = self._selected_id()
        if not contact_id:
            return False
        try:
            self.client.delete_note(note_id)
        except KeapAPIError as e:
            st.error = _error_message(e, "Failed to delete note")
            return False
        if reload:
            self.load_notes(contact_id)
        return True
