# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Transaction Logger

Single responsibility: Log and retrieve transactions (append-only JSONL)
"""

import json
import logging
import uuid
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime, UTC

from .models import (
    TransactionRecord,
    TransactionOperation,
    TransactionStatus
)

logger = logging.getLogger(__name__)


class TransactionLogger:
    """Manages transaction logging to append-only JSONL file"""

    def __init__(self, log_file: Path):
        """
        Initialize transaction logger.

        Args:
            log_file: Path to transactions.jsonl
        """
        self.log_file = log_file

    def create_transaction(
        self,
        operation: TransactionOperation,
        package_name: str,
        version: Optional[str] = None
    ) -> TransactionRecord:
        """
        Create a new transaction record.

        Args:
            operation: Type of operation
            package_name: Package name
            version: Package version

        Returns:
            New transaction record
        """
        return TransactionRecord(
            id=f"txn-{uuid.uuid4().hex[:12]}",
            operation=operation,
            package_name=package_name,
            version=version,
            status=TransactionStatus.PENDING,
            started_at=datetime.now(UTC)
        )

    def log(self, transaction: TransactionRecord):
        """
        Append transaction to JSONL log file.

        Args:
            transaction: Transaction record to log
        """
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        log_line = json.dumps(transaction.to_dict())
        with open(self.log_file, "a") as f:
            f.write(log_line + "\n")

    def start(self, transaction: TransactionRecord):
        transaction.status = TransactionStatus.IN_PROGRESS
        self.log(transaction)

    def finish(
        self,
        transaction: TransactionRecord,
        status: TransactionStatus,
        error: Optional[str] = None
    ):
        """Record the final state of a transaction."""
        transaction.status = status
        transaction.error = error
        transaction.completed_at = datetime.now(UTC)
        self.log(transaction)

    def list_transactions(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        List recent transaction entries from log.

        Args:
            limit: Maximum number of entries to return

        Returns:
            List of transaction entries (most recent first)
        """
        if not self.log_file.exists():
            return []

        transactions = []
        with open(self.log_file, "r") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    transactions.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse transaction log line: {e}")

        return list(reversed(transactions[-limit:]))
