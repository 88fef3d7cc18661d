# guidant/services/ledger.py
"""
Transaction boundary shared by the request and session ledgers.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from guidant.exceptions import dependency_guard


@contextmanager
def ledger_transaction(db: Session, dependency: str) -> Iterator[Session]:
    """
    Run one lifecycle transition as a single commit.

    Either every staged change (ledger rows, counters, notifications) is
    committed or the whole transaction is rolled back and the error re-raised,
    so a timeout never leaves a partial mutation visible.
    """
    try:
        with dependency_guard(dependency):
            yield db
            db.commit()
    except Exception:
        db.rollback()
        raise
