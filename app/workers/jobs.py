"""RQ job definitions for background processing."""

from __future__ import annotations

import logging

from app.billing.amounts import recalculate_quote
from app.billing.events import QUOTE_MODIFIED
from app.db.crud.quotes import get_quote
from app.db.session import SessionLocal, transaction

logger = logging.getLogger(__name__)


def recalculate_quote_amounts(quote_id: int) -> dict:
    """Background job: recompute and store a quote's tax and amount snapshot."""
    db = SessionLocal()
    try:
        quote = get_quote(db, quote_id)
        if quote is None:
            logger.warning("Quote %s vanished before recalculation", quote_id)
            return {"quote_id": quote_id, "recalculated": False, "reason": "quote-not-found"}
        with transaction(db):
            breakdown = recalculate_quote(db, quote)
        return {"quote_id": quote_id, "recalculated": True, "total": str(breakdown.total)}
    finally:
        db.close()


EVENT_JOBS = {
    QUOTE_MODIFIED: recalculate_quote_amounts,
}
