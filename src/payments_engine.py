import logging
from typing import Dict, Optional, TextIO

from csv_io import read_transactions
from ledger import Ledger
from models import ClientAccount

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Feeds parsed transactions into a Ledger strictly in input order.
    A malformed record aborts the whole run (MalformedRecordError propagates).
    """

    def __init__(self, ledger: Optional[Ledger] = None):
        self._ledger = ledger if ledger is not None else Ledger()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath}")
        # utf-8-sig drops a leading byte order mark from spreadsheet exports.
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        for transaction in read_transactions(stream):
            self._ledger.apply(transaction)

        stats = self._ledger.stats
        logger.info(f"Applied: {stats.applied}, Rejected: {stats.rejected}")
        return self._ledger.get_all_accounts()
