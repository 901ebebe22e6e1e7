"""
Keap CRM (REST v2) client and payload models.

All contact and note data lives in Keap; nothing here persists locally.
"""
