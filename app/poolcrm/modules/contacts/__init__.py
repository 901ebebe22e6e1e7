"""
Contacts module.

Scope:
- Contacts list with local search
- Add / edit form (first email, phone and address only)
- Pool service notes attached to a contact
- Delete from the list (browser-confirmed)
"""
