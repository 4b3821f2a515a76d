"""Subscription state and per-update handling for a live transaction feed."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from .core import TransactionParser
from .types import DecodeError, TokenBalance, TransactionUpdate
from .utils import base58_encode

logger = logging.getLogger(__name__)

PUMP_AMM_PROGRAM_ID = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"
PUMP_FUN_PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
RAYDIUM_PROGRAM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"

COMMITMENT_PROCESSED = 0
MAX_RETRY_WITH_FROM_SLOT = 5
FILTER_NAME = "client"


def _transaction_filter() -> dict:
    return {
        "vote": False,
        "failed": False,
        "account_include": [PUMP_AMM_PROGRAM_ID, PUMP_FUN_PROGRAM_ID],
        "account_exclude": [],
        "account_required": [],
        "signature": None,
    }


@dataclass
class SubscribeRequest:
    """A feed subscription: named transaction filters plus commitment and resume slot."""

    transactions: dict[str, dict] = field(default_factory=dict)
    commitment: Optional[int] = None
    from_slot: Optional[int] = None
    ping: Optional[int] = None


def build_subscribe_request(from_slot: Optional[int] = None) -> SubscribeRequest:
    """Subscribe to successful non-vote transactions touching the pump programs."""
    return SubscribeRequest(
        transactions={FILTER_NAME: _transaction_filter()},
        commitment=COMMITMENT_PROCESSED,
        from_slot=from_slot,
    )


@dataclass
class ResumeState:
    """Tracks the last seen slot and failed attempts, deciding when to resume from a slot."""

    last_slot: Optional[int] = None
    attempts_since_success: int = 0

    def next_request(self) -> SubscribeRequest:
        """Request for the next attempt; resumes from the last slot while attempts allow."""
        use_from_slot = self.attempts_since_success < MAX_RETRY_WITH_FROM_SLOT
        if self.last_slot is None:
            return build_subscribe_request()
        if use_from_slot:
            logger.info(
                "resuming from slot %d, current attempt %d", self.last_slot, self.attempts_since_success
            )
            return build_subscribe_request(self.last_slot)
        logger.info(
            "subscribing without from_slot (dropped after %d fails, current attempt %d)",
            MAX_RETRY_WITH_FROM_SLOT,
            self.attempts_since_success,
        )
        return build_subscribe_request()

    def on_message(self) -> None:
        """A session delivered a message: the connection counts as a success."""
        self.attempts_since_success = 0

    def on_transaction(self, slot: int) -> None:
        self.last_slot = slot

    def on_failure(self) -> None:
        self.attempts_since_success += 1


def _ui_amount(balance: TokenBalance) -> float:
    if balance.ui_token_amount is None:
        raise DecodeError(f"token balance of account {balance.account_index} has no amount")
    return balance.ui_token_amount.ui_amount


def _any_changed(balances: Sequence[TokenBalance], others: Sequence[TokenBalance]) -> bool:
    changed = False
    for balance in balances:
        match = next(
            (o for o in others if o.mint == balance.mint and o.account_index == balance.account_index),
            None,
        )
        if match is not None and _ui_amount(balance) != _ui_amount(match):
            changed = True
    return changed


def has_balance_change(update: TransactionUpdate) -> bool:
    """Whether any token account holds a different amount after the transaction."""
    if update.transaction is None:
        raise DecodeError("transaction update is empty")
    meta = update.transaction.meta
    pre, post = meta.pre_token_balances, meta.post_token_balances
    from_pre = _any_changed(pre, post)
    from_post = _any_changed(post, pre)
    return from_pre or from_post


def process_update(parser: TransactionParser, update: TransactionUpdate) -> Optional[str]:
    """Decode one update; return its signature if it moved tokens yet nothing was decoded."""
    if update.transaction is None:
        logger.error("transaction update was empty")
        return None
    signature = base58_encode(update.transaction.signature)
    timestamp = int(time.time() * 1000)
    logger.info("signature: %s, slot: %d, timestamp: %d", signature, update.slot, timestamp)
    events = parser.decode_transaction(update)
    if not events and has_balance_change(update):
        return signature
    return None