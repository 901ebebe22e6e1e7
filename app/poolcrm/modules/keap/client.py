from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any

from app.poolcrm.constants import DEFAULT_KEAP_BASE_URL
from app.poolcrm.modules.keap.models import Contact, ContactPage, Note, strip_read_only

logger = logging.getLogger(__name__)


class KeapAPIError(RuntimeError):
    """
    Any failed Keap request.

    `status` is the HTTP status code (None when the request never got a
    response) and `body` is the raw response text.
    """

    def __init__(self, status: int | None, body: str = "", message: str | None = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message or f"API Error: {status} - {body}")


@dataclass(frozen=True)
class KeapClient:
    api_key: str = field(repr=False)
    base_url: str = DEFAULT_KEAP_BASE_URL
    timeout_seconds: float | None = None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = self.base_url.rstrip("/") + path
        if params:
            # Only send what the caller provided; empty values are left off.
            query = urllib.parse.urlencode({k: v for k, v in params.items() if v not in (None, "")})
            if query:
                url += "?" + query

        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, method=method)
        for k, v in self._headers().items():
            req.add_header(k, v)

        kwargs: dict[str, Any] = {}
        if self.timeout_seconds is not None:
            kwargs["timeout"] = self.timeout_seconds

        try:
            with urllib.request.urlopen(req, **kwargs) as resp:
                status = resp.status
                raw = resp.read()
        except urllib.error.HTTPError as e:
            try:
                text = e.read().decode("utf-8", errors="ignore")
            except Exception:
                text = ""
            logger.warning("KEAP: %s %s failed status=%s body=%s", method, path, e.code, text[:300])
            raise KeapAPIError(e.code, text) from e
        except urllib.error.URLError as e:
            logger.warning("KEAP: %s %s transport error: %s", method, path, e.reason)
            raise KeapAPIError(None, str(e.reason), message=f"API Error: request failed - {e.reason}") from e
        except OSError as e:
            # Connection resets and read timeouts reach here unwrapped.
            logger.warning("KEAP: %s %s transport error: %s", method, path, e)
            raise KeapAPIError(None, str(e), message=f"API Error: request failed - {e}") from e

        text = raw.decode("utf-8", errors="ignore") if raw else ""
        if not 200 <= status < 300:
            logger.warning("KEAP: %s %s failed status=%s body=%s", method, path, status, text[:300])
            raise KeapAPIError(status, text)

        logger.debug("KEAP: %s %s status=%s", method, path, status)
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise KeapAPIError(status, text, message=f"Invalid JSON from Keap ({path})") from e

    # -- contacts ----------------------------------------------------------

    def list_contacts(
        self,
        *,
        page_size: int | None = None,
        page_token: str | None = None,
        filter: str | None = None,
    ) -> ContactPage:
        j = self.request_json(
            "GET",
            "/contacts",
            params={"page_size": page_size, "page_token": page_token, "filter": filter},
        )
        return ContactPage.from_json(j if isinstance(j, dict) else {})

    def get_contact(self, contact_id: int) -> Contact:
        j = self.request_json("GET", f"/contacts/{int(contact_id)}")
        return Contact.from_json(j if isinstance(j, dict) else {})

    def create_contact(self, contact: Contact) -> Contact:
        j = self.request_json("POST", "/contacts", body=contact.to_payload())
        return Contact.from_json(j if isinstance(j, dict) else {})

    def update_contact(self, contact_id: int, contact: Contact | dict[str, Any]) -> Contact:
        """PATCH: keys left out of the body are untouched server-side."""
        body = contact.to_payload() if isinstance(contact, Contact) else strip_read_only(contact)
        j = self.request_json("PATCH", f"/contacts/{int(contact_id)}", body=body)
        return Contact.from_json(j if isinstance(j, dict) else {})

    def delete_contact(self, contact_id: int) -> None:
        self.request_json("DELETE", f"/contacts/{int(contact_id)}")

    # -- notes -------------------------------------------------------------

    def list_notes(self, contact_id: int) -> list[Note]:
        j = self.request_json("GET", "/notes", params={"filter": f"contact_id=={int(contact_id)}"})
        notes = j.get("notes") if isinstance(j, dict) else None
        if not isinstance(notes, list):
            return []
        return [Note.from_json(n) for n in notes if isinstance(n, dict)]

    def create_note(self, note: Note) -> Note:
        j = self.request_json("POST", "/notes", body=note.to_payload())
        return Note.from_json(j if isinstance(j, dict) else {})

    def update_note(self, note_id: int, note: Note | dict[str, Any]) -> Note:
        body = note.to_payload() if isinstance(note, Note) else strip_read_only(note)
        j = self.request_json("PATCH", f"/notes/{int(note_id)}", body=body)
        return Note.from_json(j if isinstance(j, dict) else {})

    def delete_note(self, note_id: int) -> None:
        self.request_json("DELETE", f"/notes/{int(note_id)}")


def client_from_config(config: dict[str, Any]) -> KeapClient:
    api_key = str(config.get("KEAP_API_KEY") or "").strip()
    if not api_key:
        raise KeapAPIError(None, "", message="KEAP_API_KEY is not configured.")
    return KeapClient(
        api_key=api_key,
        base_url=str(config.get("KEAP_BASE_URL") or DEFAULT_KEAP_BASE_URL),
        timeout_seconds=config.get("KEAP_TIMEOUT_SECONDS"),
    )
