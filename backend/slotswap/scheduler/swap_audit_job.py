"""
Periodic swap state audit: logs invariant violations so they surface in ops logs.
Does not repair anything.
"""
import logging

from slotswap.db.session import SessionLocal
from slotswap.services.swap_audit_service import audit_swap_state

logger = logging.getLogger(__name__)


def run_swap_audit_job() -> dict[str, list[int]] | None:
    db = SessionLocal()
    try:
        report = audit_swap_state(db)
    except Exception as e:
        logger.warning("Swap audit failed: %s", e, exc_info=True)
        return None
    finally:
        db.close()
    problems = {name: ids for name, ids in report.items() if ids}
    if not problems:
        logger.debug("Swap audit clean")
    for name, ids in problems.items():
        logger.warning("Swap audit: %s=%s", name, ids)
    return report
