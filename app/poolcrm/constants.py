"""
Central constants for the Pool Maintenance CRM.
"""
from __future__ import annotations

DEFAULT_KEAP_BASE_URL = "https://api.infusionsoft.com/crm/rest/v2"

# Contacts are fetched in a single page of this size (no incremental paging)
DEFAULT_PAGE_SIZE = 100

# Every note written by this app carries the same title
SERVICE_NOTE_TITLE = "Pool Service Notes"

# Field roles for the single email/phone/address slot shown in the form
EMAIL_FIELD = "EMAIL1"
PHONE_FIELD = "PHONE1"
ADDRESS_FIELD = "BILLING"
