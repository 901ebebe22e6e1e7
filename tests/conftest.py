from __future__ import annotations

import pytest

from app.poolcrm.modules.keap.client import KeapAPIError
from app.poolcrm.modules.keap.models import Contact, ContactPage, EmailAddress, Note


class FakeKeapClient:
    """In-memory stand-in for KeapClient that records every call."""

    def __init__(self, contacts: list[Contact] | None = None, notes: list[Note] | None = None) -> None:
        self.contacts = list(contacts or [])
        self.notes = list(notes or [])
        self.calls: list[tuple] = []
        self.fail: dict[str, KeapAPIError] = {}
        self._next_id = 1000

    def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def list_contacts(self, *, page_size=None, page_token=None, filter=None):
        self._call("list_contacts", page_size)
        return ContactPage(contacts=list(self.contacts))

    def get_contact(self, contact_id):
        self._call("get_contact", contact_id)
        for c in self.contacts:
            if c.id == contact_id:
                return c
        raise KeapAPIError(404, '{"message":"Contact not found"}')

    def create_contact(self, contact):
        self._call("create_contact", contact.to_payload())
        self._next_id += 1
        created = Contact.from_json({**contact.to_payload(), "id": self._next_id})
        self.contacts.append(created)
        return created

    def update_contact(self, contact_id, contact):
        payload = contact.to_payload() if isinstance(contact, Contact) else dict(contact)
        self._call("update_contact", contact_id, payload)
        return Contact.from_json({**payload, "id": contact_id})

    def delete_contact(self, contact_id):
        self._call("delete_contact", contact_id)
        self.contacts = [c for c in self.contacts if c.id != contact_id]

    def list_notes(self, contact_id):
        self._call("list_notes", contact_id)
        return [n for n in self.notes if n.contact_id == contact_id]

    def create_note(self, note):
        self._call("create_note", note.to_payload())
        self._next_id += 1
        created = Note.from_json({**note.to_payload(), "id": self._next_id})
        self.notes.append(created)
        return created

    def update_note(self, note_id, note):
        payload = note.to_payload() if isinstance(note, Note) else dict(note)
        self._call("update_note", note_id, payload)
        return Note.from_json({**payload, "id": note_id})

    def delete_note(self, note_id):
        self._call("delete_note", note_id)
        self.notes = [n for n in self.notes if n.id != note_id]


def make_contact(contact_id, given, family, email=None):
    return Contact(
        id=contact_id,
        given_name=given,
        family_name=family,
        email_addresses=[EmailAddress(email=email, field="EMAIL1")] if email else [],
    )


@pytest.fixture()
def sample_contacts():
    return [
        make_contact(1, "Jane", "Doe", "jane@x.com"),
        make_contact(2, "Bob", "Marley", "bob@reggae.org"),
        make_contact(3, "Alice", "Poolman", None),
    ]


@pytest.fixture()
def fake_keap(sample_contacts):
    return FakeKeapClient(
        contacts=sample_contacts,
        notes=[Note(id=50, contact_id=1, title="Pool Service Notes", body="Chlorine low", date_created="2024-05-01T10:00:00Z")],
    )
