"""Plain-text report of a reconciled transfer."""

from pathlib import Path
from typing import Union
import structlog

from btc_reconciler.models.blockchain import ReconciledTransfer

logger = structlog.get_logger(__name__)


class ReportWriter:
    """
    Write one field per line in a fixed order:

    txid, funding address, funding amount, recipient address, recipient
    amount, change address, change amount, fee, block height, block hash.
    Amounts are in BTC. There is no header; line order is the schema.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def render(self, transfer: ReconciledTransfer) -> str:
        return "".join(f"{line}\n" for line in transfer.report_lines())

    def write(self, transfer: ReconciledTransfer) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.render(transfer), encoding="utf-8")

        logger.info("Transaction details written", path=str(self.path), txid=transfer.txid)
        return self.path
