#!/usr/bin/env python3
"""
Report slot/request invariant violations (read-only).
Run: cd backend && python scripts/audit_swaps.py
Exit code 1 when any violation is found.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from slotswap.db.session import SessionLocal
from slotswap.services.swap_audit_service import audit_swap_state


def main():
    db = SessionLocal()
    try:
        report = audit_swap_state(db)
    finally:
        db.close()
    found = 0
    for name, ids in report.items():
        print(f"{name}: {len(ids)}")
        for row_id in ids[:15]:
            print(f"  id={row_id}")
        if len(ids) > 15:
            print(f"  ... and {len(ids) - 15} more")
        found += len(ids)
    print("\nOK  no violations" if not found else f"\nFAIL {found} violation(s)")
    return 1 if found else 0


if __name__ == "__main__":
    sys.exit(main())
