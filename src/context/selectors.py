"""
src/context/selectors.py
"""


from typing import Any, Dict, Iterable, List, Optional, Tuple
from rapidfuzz import fuzz, process


def client_display_name(client: Dict) -> str:

    name = f"{client.get('firstName', '')} {client.get('lastName', '')}".strip()
    company = client.get("company")

    return f"{name} ({company})" if company else name

def find_client_candidates(clients: List[Dict], query: str, limit: int = 5) -> List[Tuple[Dict, int]]:
    """Return [(client, score), ...] sorted by fuzzy match score on name + company."""

    names = [client_display_name(c) for c in clients]
    matches = process.extract(query, names, scorer=fuzz.WRatio, limit=limit)

    # matches: [(name, score, index)]
    out = []
    for name, score, idx in matches:
        out.append((clients[idx], int(score)))

    return out

def get_record_by_id(records: Iterable[Dict], record_id: Any) -> Optional[Dict]:

    return next((r for r in records if str(r.get("id")) == str(record_id)), None)

def order_keys(order: Dict) -> set:
    """Identifiers an invoice may use to point at this order."""

    return {str(v) for v in (order.get("id"), order.get("orderId")) if v not in (None, "")}
