"""
src/app.py
"""


import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from config import LOG_LEVEL, STATE_PATH, SortDirection, WORKSPACE_PATH
from context.loader import COLLECTIONS, load_workspace
from exceptions import BackofficeError
from services.storage import FileStorage
from tools.exports import export_invoice_pdf


APP_TITLE = "Back-office (command line)"
AUDIT_TAIL = 5


def configure_logging(level: str = LOG_LEVEL) -> None:

    logger.remove()
    logger.add(sys.stderr, level=level)

def build_parser() -> argparse.ArgumentParser:

    parser = argparse.ArgumentParser(description=APP_TITLE)
    parser.add_argument("--workspace", type=Path, default=WORKSPACE_PATH, help="Seed users and records (JSON)")
    parser.add_argument("--state", type=Path, default=STATE_PATH, help="Session and audit storage (JSON)")
    parser.add_argument("--email", help="Log in as this user before running the command")
    parser.add_argument("--password", default="")

    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="Print one page of a collection")
    ls.add_argument("collection", choices=COLLECTIONS)
    ls.add_argument("--search", default="")
    ls.add_argument("--status", help="Exact status filter")
    ls.add_argument("--start", help="Range start (ISO date), needs --end")
    ls.add_argument("--end", help="Range end (ISO date), needs --start")
    ls.add_argument("--sort", help="Column to sort by")
    ls.add_argument("--desc", action="store_true", help="Sort descending")
    ls.add_argument("--page", type=int, default=1)
    ls.add_argument("--page-size", type=int)

    ex = sub.add_parser("export", help="Write products to .xlsx or one invoice to .pdf")
    ex.add_argument("what", choices=("products", "invoice"))
    ex.add_argument("--id", help="Invoice id (for 'invoice')")
    ex.add_argument("--out", type=Path, default=Path("."), help="Output directory")

    sub.add_parser("logout", help="Clear the stored session")

    return parser

def run_list(ws, args) -> dict:

    collection = getattr(ws, args.collection)
    collection.fetch()

    if args.page_size:
        collection.view.page_size = args.page_size
    if args.sort:
        collection.view.sort_column = args.sort
        collection.view.sort_direction = SortDirection.DESC if args.desc else SortDirection.ASC

    collection.set_search_query(args.search)
    if args.status:
        collection.set_filter("status", args.status)
    collection.set_date_filter(args.start, args.end)

    if args.page != 1 and not collection.change_page(args.page):
        logger.warning("Page {} is out of range; showing page 1", args.page)

    page = collection.page()

    return {
        "collection": args.collection,
        "page": page.model_dump(mode="json"),
        "pages": collection.page_numbers(),
        "audit": [e.model_dump(by_alias=True, mode="json") for e in ws.audit.entries()[:AUDIT_TAIL]],
    }

def run_export(ws, args) -> dict:

    if args.what == "products":
        ws.products.fetch()
        return {"path": ws.products.export_to_excel(args.out)}

    if not args.id:
        raise BackofficeError("--id is required to export an invoice")

    ws.permissions.require("export_data")
    invoice = ws.backend.get("invoices", args.id)
    path = export_invoice_pdf(invoice, str(args.out / f"invoice-{invoice.get('invoiceId') or args.id}.pdf"))
    ws.log("EXPORT_INVOICE", f"Exported invoice {args.id} to PDF", category="invoice", target_id=args.id)

    return {"path": path}

def main(argv=None) -> int:

    args = build_parser().parse_args(argv)
    configure_logging()

    ws = load_workspace(args.workspace, storage=FileStorage(args.state))

    if args.command == "logout":
        ws.session.logout()
        print(json.dumps({"success": True}))
        return 0

    if args.email:
        result = ws.session.login(args.email, args.password)
        if not result["success"]:
            print(json.dumps(result), file=sys.stderr)
            return 1

    if not ws.session.is_authenticated:
        print(json.dumps({"success": False, "error": "Not logged in"}), file=sys.stderr)
        return 1

    try:
        result = run_list(ws, args) if args.command == "list" else run_export(ws, args)
    except (BackofficeError, PermissionError) as e:
        print(json.dumps({"success": False, "error": str(e)}), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))

    return 0


if __name__ == "__main__":

    sys.exit(main())

# EOF
