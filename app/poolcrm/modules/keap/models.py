from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Server-assigned keys that never go back out in a request body.
_READ_ONLY_KEYS = ("id", "date_created", "last_updated")


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _list_of(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [r for r in raw if isinstance(r, dict)]


def _compact(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass
class EmailAddress:
    email: str
    field: str

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> EmailAddress:
        return cls(email=str(d.get("email") or ""), field=str(d.get("field") or ""))

    def to_payload(self) -> dict[str, Any]:
        return {"email": self.email, "field": self.field}


@dataclass
class PhoneNumber:
    number: str
    field: str

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> PhoneNumber:
        return cls(number=str(d.get("number") or ""), field=str(d.get("field") or ""))

    def to_payload(self) -> dict[str, Any]:
        return {"number": self.number, "field": self.field}


@dataclass
class Address:
    field: str
    line1: str | None = None
    line2: str | None = None
    locality: str | None = None
    region: str | None = None
    zip_code: str | None = None
    country_code: str | None = None

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> Address:
        return cls(
            field=str(d.get("field") or ""),
            line1=_str_or_none(d.get("line1")),
            line2=_str_or_none(d.get("line2")),
            locality=_str_or_none(d.get("locality")),
            region=_str_or_none(d.get("region")),
            zip_code=_str_or_none(d.get("zip_code")),
            country_code=_str_or_none(d.get("country_code")),
        )

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "line1": self.line1,
                "line2": self.line2,
                "locality": self.locality,
                "region": self.region,
                "zip_code": self.zip_code,
                "country_code": self.country_code,
                "field": self.field,
            }
        )

    @property
    def one_line(self) -> str:
        """Street and city, as shown on the contact card."""
        return ", ".join(p for p in (self.line1, self.locality) if p)


@dataclass
class CustomField:
    id: int
    content: str

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> CustomField:
        return cls(id=int(d.get("id") or 0), content=str(d.get("content") or ""))

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.id, "content": self.content}


@dataclass
class Contact:
    """
    A Keap contact.

    `id` is None until the contact has been created remotely; Keap assigns it
    and it never changes afterwards. Only the first email/phone/address is
    surfaced by the form, but the full sequences round-trip.
    """

    id: int | None = None
    given_name: str | None = None
    family_name: str | None = None
    email_addresses: list[EmailAddress] = field(default_factory=list)
    phone_numbers: list[PhoneNumber] = field(default_factory=list)
    addresses: list[Address] = field(default_factory=list)
    custom_fields: list[CustomField] = field(default_factory=list)
    date_created: str | None = None
    last_updated: str | None = None

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> Contact:
        return cls(
            id=_int_or_none(d.get("id")),
            given_name=_str_or_none(d.get("given_name")),
            family_name=_str_or_none(d.get("family_name")),
            email_addresses=[EmailAddress.from_json(e) for e in _list_of(d.get("email_addresses"))],
            phone_numbers=[PhoneNumber.from_json(p) for p in _list_of(d.get("phone_numbers"))],
            addresses=[Address.from_json(a) for a in _list_of(d.get("addresses"))],
            custom_fields=[CustomField.from_json(c) for c in _list_of(d.get("custom_fields"))],
            date_created=_str_or_none(d.get("date_created")),
            last_updated=_str_or_none(d.get("last_updated")),
        )

    def to_payload(self) -> dict[str, Any]:
        """
        Request body for create/update.

        Collections are always present so an empty list clears them on PATCH.
        """
        payload: dict[str, Any] = _compact({"given_name": self.given_name, "family_name": self.family_name})
        payload["email_addresses"] = [e.to_payload() for e in self.email_addresses]
        payload["phone_numbers"] = [p.to_payload() for p in self.phone_numbers]
        payload["addresses"] = [a.to_payload() for a in self.addresses]
        if self.custom_fields:
            payload["custom_fields"] = [c.to_payload() for c in self.custom_fields]
        return payload

    @property
    def primary_email(self) -> EmailAddress | None:
        return self.email_addresses[0] if self.email_addresses else None

    @property
    def primary_phone(self) -> PhoneNumber | None:
        return self.phone_numbers[0] if self.phone_numbers else None

    @property
    def primary_address(self) -> Address | None:
        return self.addresses[0] if self.addresses else None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.given_name, self.family_name) if p)


@dataclass
class Note:
    id: int | None = None
    contact_id: int | None = None
    title: str | None = None
    body: str | None = None
    date_created: str | None = None
    last_updated: str | None = None

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> Note:
        return cls(
            id=_int_or_none(d.get("id")),
            contact_id=_int_or_none(d.get("contact_id")),
            title=_str_or_none(d.get("title")),
            body=_str_or_none(d.get("body")),
            date_created=_str_or_none(d.get("date_created")),
            last_updated=_str_or_none(d.get("last_updated")),
        )

    def to_payload(self) -> dict[str, Any]:
        return _compact({"contact_id": self.contact_id, "title": self.title, "body": self.body})

    @property
    def created_on(self) -> str:
        """Date portion of date_created (Keap sends ISO-8601 timestamps)."""
        return (self.date_created or "")[:10]


@dataclass
class ContactPage:
    contacts: list[Contact] = field(default_factory=list)
    next_page_token: str | None = None

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> ContactPage:
        return cls(
            contacts=[Contact.from_json(c) for c in _list_of(d.get("contacts"))],
            next_page_token=_str_or_none(d.get("next_page_token")) or None,
        )


def strip_read_only(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop server-assigned keys from a caller-supplied partial update."""
    return {k: v for k, v in payload.items() if k not in _READ_ONLY_KEYS}
