"""
src/tools/clients.py - client directory collection

Search box matches first name, last name, company or email. `find` adds the
fuzzy lookup (RapidFuzz) used to pick a client from loosely typed text, so
"acme" finds "Jane Doe (Acme Ltd)".
"""


from __future__ import annotations
from typing import Dict, List

from config import Modal
from context import selectors
from tools.records import Record, RecordCollection


class ClientCollection(RecordCollection):

    collection = "clients"
    record_type = "CLIENT"
    category = "client"
    required_fields = ("firstName", "lastName")
    float_fields = ()
    int_fields = ()
    search_fields = ("firstName", "lastName", "company", "email")
    exact_filter_fields = ()
    default_page_size = 5
    create_modal = Modal.ADD_CLIENT
    edit_modal = Modal.EDIT_CLIENT

    def describe(self, rec: Record) -> str:

        return selectors.client_display_name(rec) or str(rec.get("id"))

    def edit(self, client: Dict) -> None:
        """Open the edit dialog for `client`."""

        self.open_modal(Modal.EDIT_CLIENT, client)

    def find(self, query: str, *, top_k: int = 5, min_score: int = 60) -> List[Record]:
        """
        Return up to `top_k` clients whose name or company resembles `query`, best first.

        Candidates scoring below `min_score` (0-100) are dropped.
        """

        if not query or not self.records:
            return []

        ranked = selectors.find_client_candidates(self.records, query, limit=top_k)

        return [client for client, score in ranked if score >= min_score]
