from __future__ import annotations
"""D1 adapter for app.db (contact_form rows go to the remote database)."""
from luxcars.contact import ContactSubmission, INSERT_CONTACT_SQL
from luxcars.d1 import D1Client


class D1ContactStore:

    def __init__(self, client: D1Client):
        self.client = client

    def insert_contact(self, submission: ContactSubmission) -> int:
        result = self.client.query(INSERT_CONTACT_SQL, list(submission.row_params()))
        first = (result.get('result') or [{}])[0] or {}
        return int((first.get('meta') or {}).get('last_row_id') or 0)


def open_store(settings) -> D1ContactStore:
    # token auth first; the global key is only used when no token is set
    return D1ContactStore(D1Client.from_settings(settings, prefer_global_key=False))


__all__ = ["D1ContactStore", "open_store"]
