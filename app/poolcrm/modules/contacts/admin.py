from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from app.poolcrm.constants import DEFAULT_PAGE_SIZE
from app.poolcrm.modules.contacts.service import ContactsController
from app.poolcrm.modules.contacts.state import ViewState
from app.poolcrm.modules.keap.client import KeapAPIError, KeapClient
from app.poolcrm.modules.keap.models import Contact

bp = Blueprint("contacts", __name__)


def _client() -> KeapClient:
    client = current_app.extensions.get("keap_client")
    if client is None:
        raise KeapAPIError(None, "", message="KEAP_API_KEY is not configured.")
    return client


def _controller(state: ViewState | None = None) -> ContactsController | None:
    try:
        client = _client()
    except KeapAPIError as e:
        flash(str(e), "danger")
        return None
    page_size = int(current_app.config.get("KEAP_PAGE_SIZE") or DEFAULT_PAGE_SIZE)
    return ContactsController(client, state, page_size=page_size)


def _edit_controller(contact_id: int) -> ContactsController | None:
    """Controller already on the edit tab for `contact_id` (no fetch)."""
    return _controller(ViewState(tab="edit", selected_contact=Contact(id=contact_id)))


def _render(ctrl: ContactsController | None):
    if ctrl is None:
        return render_template("contacts/index.html", state=ViewState(), contacts=[])
    return render_template("contacts/index.html", state=ctrl.state, contacts=ctrl.filtered_contacts)


@bp.get("/contacts")
def contacts_list():
    ctrl = _controller()
    if ctrl is not None:
        ctrl.search((request.args.get("q") or "").strip())
        ctrl.load_contacts()
    return _render(ctrl)


@bp.get("/contacts/new")
def contacts_new_get():
    ctrl = _controller()
    if ctrl is not None:
        ctrl.open_add()
    return _render(ctrl)


@bp.post("/contacts/new")
def contacts_new_post():
    ctrl = _controller(ViewState(tab="add"))
    if ctrl is None:
        return redirect(url_for("contacts.contacts_list"))
    if ctrl.submit(request.form, reload=False):
        flash("Contact saved.", "success")
        return redirect(url_for("contacts.contacts_list"))
    # Same tab, same values, error banner on top.
    return _render(ctrl)


@bp.get("/contacts/<int:contact_id>/edit")
def contact_edit_get(contact_id: int):
    ctrl = _controller()
    if ctrl is None:
        return redirect(url_for("contacts.contacts_list"))
    if not ctrl.open_edit(contact_id):
        flash(ctrl.state.error or "Contact not found.", "danger")
        return redirect(url_for("contacts.contacts_list"))
    return _render(ctrl)


@bp.post("/contacts/<int:contact_id>/edit")
def contact_edit_post(contact_id: int):
    ctrl = _edit_controller(contact_id)
    if ctrl is None:
        return redirect(url_for("contacts.contacts_list"))
    if ctrl.submit(request.form, reload=False):
        flash("Contact updated.", "success")
        return redirect(url_for("contacts.contacts_list"))
    ctrl.load_notes(contact_id)
    return _render(ctrl)


@bp.post("/contacts/<int:contact_id>/delete")
def contact_delete(contact_id: int):
    confirmed = (request.form.get("confirm") or "").strip().lower() == "yes"
    ctrl = _controller()
    if ctrl is None or not confirmed:
        return redirect(url_for("contacts.contacts_list"))
    if ctrl.delete_contact(contact_id, confirmed=True, reload=False):
        flash("Contact deleted.", "success")
    else:
        flash(ctrl.state.error or "Failed to delete contact", "danger")
    return redirect(url_for("contacts.contacts_list"))


@bp.post("/contacts/<int:contact_id>/notes")
def contact_note_add(contact_id: int):
    ctrl = _edit_controller(contact_id)
    if ctrl is None:
        return redirect(url_for("contacts.contacts_list"))
    if ctrl.add_note(request.form.get("new_note") or "", reload=False):
        flash("Note added.", "success")
    elif ctrl.state.error:
        # Re-render the edit tab so the typed note survives the failure.
        typed, error = ctrl.state.new_note, ctrl.state.error
        if ctrl.open_edit(contact_id):
            ctrl.state.new_note = typed
            ctrl.state.error = error
            return _render(ctrl)
        flash(error, "danger")
    return redirect(url_for("contacts.contact_edit_get", contact_id=contact_id))


@bp.post("/contacts/<int:contact_id>/notes/<int:note_id>/edit")
def contact_note_edit(contact_id: int, note_id: int):
    ctrl = _edit_controller(contact_id)
    if ctrl is None:
        return redirect(url_for("contacts.contacts_list"))
    if ctrl.update_note(note_id, request.form.get("note_text") or "", reload=False):
        flash("Note updated.", "success")
    else:
        flash(ctrl.state.error or "Note text is required.", "danger")
    return redirect(url_for("contacts.contact_edit_get", contact_id=contact_id))


@bp.post("/contacts/<int:contact_id>/notes/<int:note_id>/delete")
def contact_note_delete(contact_id: int, note_id: int):
    ctrl = _edit_controller(contact_id)
    if ctrl is None:
        return redirect(url_for("contacts.contacts_list"))
    if ctrl.delete_note(note_id, reload=False):
        flash("Note deleted.", "success")
    else:
        flash(ctrl.state.error or "Failed to delete note", "danger")
    return redirect(url_for("contacts.contact_edit_get", contact_id=contact_id))
