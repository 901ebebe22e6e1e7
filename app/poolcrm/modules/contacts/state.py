from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Literal

from app.poolcrm.constants import ADDRESS_FIELD, EMAIL_FIELD, PHONE_FIELD
from app.poolcrm.modules.keap.models import Address, Contact, EmailAddress, Note, PhoneNumber

Tab = Literal["contacts", "add", "edit"]


@dataclass
class ContactForm:
    """Flattened add/edit form: one contact plus one pending note body."""

    given_name: str = ""
    family_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    notes: str = ""

    @classmethod
    def from_contact(cls, c: Contact) -> ContactForm:
        email = c.primary_email
        phone = c.primary_phone
        addr = c.primary_address
        return cls(
            given_name=c.given_name or "",
            family_name=c.family_name or "",
            email=email.email if email else "",
            phone=phone.number if phone else "",
            address=(addr.line1 or "") if addr else "",
            city=(addr.locality or "") if addr else "",
            state=(addr.region or "") if addr else "",
            zip=(addr.zip_code or "") if addr else "",
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ContactForm:
        return cls(**{f.name: str(data.get(f.name) or "") for f in fields(cls)})

    def missing_required(self) -> list[str]:
        missing = []
        if not self.given_name:
            missing.append("First name")
        if not self.family_name:
            missing.append("Last name")
        return missing

    def to_contact(self) -> Contact:
        """
        Build the request contact.

        Empty email/phone/address become explicit empty lists, so on update
        a cleared field removes that contact method instead of leaving it.
        """
        return Contact(
            given_name=self.given_name,
            family_name=self.family_name,
            email_addresses=[EmailAddress(email=self.email, field=EMAIL_FIELD)] if self.email else [],
            phone_numbers=[PhoneNumber(number=self.phone, field=PHONE_FIELD)] if self.phone else [],
            addresses=[
                Address(
                    field=ADDRESS_FIELD,
                    line1=self.address,
                    locality=self.city,
                    region=self.state,
                    zip_code=self.zip,
                )
            ]
            if self.address
            else [],
        )


@dataclass
class ViewState:
    tab: Tab = "contacts"
    contacts: list[Contact] = field(default_factory=list)
    selected_contact: Contact | None = None
    notes: list[Note] = field(default_factory=list)
    form: ContactForm = field(default_factory=ContactForm)
    new_note: str = ""
    loading: bool = False
    error: str | None = None
    search_term: str = ""

    def reset_form(self) -> None:
        self.form = ContactForm()
        self.new_note = ""
        self.selected_contact = None
        self.notes = []


def _contains(value: str | None, needle: str) -> bool:
    return bool(value) and needle in value.lower()


def contact_matches(c: Contact, term: str) -> bool:
    needle = (term or "").lower()
    email = c.primary_email
    return (
        _contains(c.given_name, needle)
        or _contains(c.family_name, needle)
        or _contains(email.email if email else None, needle)
    )


def filter_contacts(contacts: list[Contact], term: str) -> list[Contact]:
    """
    Local search: case-insensitive substring on given name, family name or
    first email. An empty term keeps every contact, in order.
    """
    if not term:
        return list(contacts)
    return [c for c in contacts if contact_matches(c, term)]
