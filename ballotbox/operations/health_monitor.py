# ballotbox/operations/health_monitor.py
# Store health: expected tables, row counts, tally consistency, disk space.

import shutil
import logging
from typing import Dict
from sqlalchemy.exc import SQLAlchemyError

from ballotbox.database.errors import ElectionStoreError

logger = logging.getLogger(__name__)

EXPECTED_TABLES = ('voters', 'candidates', 'votes', 'admins', 'audit_logs')


def _check_tables(store) -> Dict:
    tables = store.table_names()
    missing = [t for t in EXPECTED_TABLES if t not in tables]
    # audit_logs is optional; the store degrades without it
    required_missing = [t for t in missing if t != 'audit_logs']
    return {"ok": not required_missing, "tables": tables, "missing": missing}


def _check_counts(store) -> Dict:
    return {
        "voters": len(store.get_all_voters()),
        "candidates": len(store.get_all_candidates()),
        "admins": len(store.get_all_admins()),
        "votes": len(store.get_all_votes()),
        "audit_logs": len(store.get_all_audit_logs()),
    }


def _check_tallies(store) -> Dict:
    ledger = store.ledger_tallies()
    mismatched = {
        c.id: {"stored": c.vote_count, "ledger": ledger.get(c.id, 0)}
        for c in store.get_all_candidates()
        if c.vote_count != ledger.get(c.id, 0)
    }
    voted = len(store.get_voted_voters())
    ledger_rows = sum(ledger.values())
    return {
        "ok": not mismatched and voted == ledger_rows,
        "mismatched": mismatched,
        "voted_voters": voted,
        "ledger_rows": ledger_rows,
    }


def _check_disk(min_free_gb: float) -> Dict:
    total, used, free = shutil.disk_usage(".")
    free_gb = free / (1024**3)
    return {"ok": free_gb >= min_free_gb, "free_gb": round(free_gb, 2), "min_required_gb": min_free_gb}


def check_database_health(store, min_free_gb: float = 0.1) -> Dict:
    """Aggregate store health; never raises."""
    try:
        tables = _check_tables(store)
        counts = _check_counts(store)
        tallies = _check_tallies(store)
    except (SQLAlchemyError, ElectionStoreError) as e:
        store.session.rollback()
        logger.error(f"Database health check failed: {e}")
        return {"healthy": False, "error": str(e)}

    disk = _check_disk(min_free_gb)
    healthy = tables["ok"] and tallies["ok"] and disk["ok"]
    if not healthy:
        logger.warning(f"Database unhealthy: tables={tables['missing']} tallies={tallies['mismatched']}")
    return {
        "healthy": healthy,
        "details": {"stores": tables["tables"], "missing": tables["missing"], **counts},
        "tallies": tallies,
        "disk": disk,
    }
