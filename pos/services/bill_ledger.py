"""
Bill ledger - append-only bill storage and bill number allocation.

Numbers come from the bill_sequence row for the configured prefix. The
increment is a single UPDATE executed inside the checkout transaction, so
its row lock is held until the bill is committed: two checkouts can never
read the same value, and a rolled-back checkout releases its number.
"""
import logging
import re
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from pos.exceptions import BillNotFoundError, BillNumberAllocationConflict
from pos.models import Bill, BillSequence

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = 'WH'
DEFAULT_WIDTH = 5


def format_bill_number(number: int, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH) -> str:
    """WH + zero-padded number, e.g. format_bill_number(1) -> 'WH00001'."""
    if number < 1:
        raise ValueError(f"Bill numbers start at 1, got {number}")
    return f"{prefix}{number:0{width}d}"


def parse_bill_number(bill_no: Optional[str], prefix: str = DEFAULT_PREFIX) -> Optional[int]:
    """Numeric suffix of a well-formed bill number, or None."""
    if not bill_no:
        return None
    match = re.fullmatch(rf'{re.escape(prefix)}(\d+)', bill_no.strip())
    if not match:
        return None
    return int(match.group(1))


class BillLedger:
    """Data access for bills and the bill number sequence."""

    def __init__(self, session: Session, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH):
        self.session = session
        self.prefix = prefix
        self.width = width

    def get_last_bill_number(self) -> Optional[str]:
        """Number of the most recently appended bill."""
        row = (
            self.session.query(Bill.bill_no)
            .order_by(Bill.created_at.desc(), Bill.id.desc())
            .first()
        )
        return row[0] if row else None

    def allocate_bill_number(self) -> str:
        """
        Atomically increment and read the sequence for this prefix.

        Must run inside the transaction that appends the bill. The first
        allocation seeds the sequence from the ledger.
        """
        increment = (
            update(BillSequence)
            .where(BillSequence.prefix == self.prefix)
            .values(last_value=BillSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(increment)
        if result.rowcount == 0:
            self._seed_sequence()
            self.session.execute(increment)

        last_value = (
            self.session.query(BillSequence.last_value)
            .filter(BillSequence.prefix == self.prefix)
            .scalar()
        )
        bill_no = format_bill_number(last_value, self.prefix, self.width)
        logger.debug(f"[LEDGER] Allocated {bill_no}")
        return bill_no

    def _seed_sequence(self) -> None:
        """
        Create the sequence row from the highest well-formed stored number.

        Stored numbers that do not match <prefix><digits> are skipped, so a
        malformed row never causes an already-issued number to be reused.
        """
        highest = 0
        skipped = 0
        numbers = self.session.query(Bill.bill_no).filter(Bill.bill_no.like(f'{self.prefix}%'))
        for (bill_no,) in numbers:
            value = parse_bill_number(bill_no, self.prefix)
            if value is None:
                skipped += 1
                continue
            highest = max(highest, value)
        if skipped:
            logger.warning(f"[LEDGER] Ignored {skipped} malformed bill numbers while seeding '{self.prefix}'")

        try:
            with self.session.begin_nested():
                self.session.add(BillSequence(prefix=self.prefix, last_value=highest))
        except IntegrityError:
            # Another checkout created the row first
            raise BillNumberAllocationConflict(f"Sequence '{self.prefix}' was created concurrently")
        logger.info(f"[LEDGER] Seeded bill sequence '{self.prefix}' at {highest}")

    def append(self, bill: Bill) -> Bill:
        """Add a bill to the ledger (flush only, caller commits)."""
        try:
            with self.session.begin_nested():
                self.session.add(bill)
        except IntegrityError as e:
            if 'bill_no' in str(e.orig):
                raise BillNumberAllocationConflict(f"Bill number {bill.bill_no} already issued")
            raise
        return bill

    def get_by_number(self, bill_no: str) -> Bill:
        bill = (
            self.session.query(Bill)
            .options(selectinload(Bill.lines))
            .filter(Bill.bill_no == bill_no)
            .first()
        )
        if bill is None:
            raise BillNotFoundError(bill_no)
        return bill

    def list_recent(self, limit: int = 50) -> List[Bill]:
        """Bills newest first."""
        return (
            self.session.query(Bill)
            .options(selectinload(Bill.lines))
            .order_by(Bill.created_at.desc(), Bill.id.desc())
            .limit(limit)
            .all()
        )
