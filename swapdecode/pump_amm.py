"""Decoder for the Pump AMM program: swaps, pool creation, deposits and withdrawals."""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable, Sequence
from typing import Optional

from .instruction_parser import InstructionParser
from .types import (
    DecodedEvent,
    DecodedPumpAmmBuyLog,
    DecodedPumpAmmCreatePoolEvent,
    DecodedPumpAmmDepositEvent,
    DecodedPumpAmmSellLog,
    DecodedPumpAmmSwapEvent,
    DecodedPumpAmmWithdrawEvent,
    DecodeError,
    Platform,
    PlatformEvent,
    StructuredInstruction,
    SwapEventAccounts,
    TransactionType,
    TransactionUpdate,
)
from .utils import base58_encode, read_u64_le

logger = logging.getLogger(__name__)

PROGRAM_ID = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"
POOL_CREATION_DISCRIMINATOR = bytes([233, 146, 209, 142, 207, 104, 64, 188])
BUY_DISCRIMINATOR = bytes([102, 6, 61, 18, 1, 218, 235, 234])
SELL_DISCRIMINATOR = bytes([51, 230, 133, 164, 1, 127, 131, 173])
DEPOSIT_DISCRIMINATOR = bytes([242, 35, 198, 137, 82, 225, 242, 182])
WITHDRAW_DISCRIMINATOR = bytes([183, 18, 70, 156, 148, 109, 161, 34])

BUY_LOG_MIN_LENGTH = 352
_PUBKEY_LENGTH = 32
_U16 = struct.Struct("<H")


def _slice(data: bytes, offset: int, length: int) -> bytes:
    if offset < 0 or offset + length > len(data):
        raise DecodeError(f"need {length} bytes at offset {offset}, data has {len(data)}")
    return bytes(data[offset : offset + length])


def _pubkey(data: bytes, offset: int) -> str:
    return base58_encode(_slice(data, offset, _PUBKEY_LENGTH))


def _account(instruction: StructuredInstruction, account_keys: Sequence[str], position: int) -> str:
    indexes = instruction.account_key_indexes
    if position >= len(indexes):
        raise DecodeError(f"instruction has no account at position {position}")
    index = indexes[position]
    if index >= len(account_keys):
        raise DecodeError(f"account index {index} out of range ({len(account_keys)} keys)")
    return account_keys[index]


def _last_inner(instruction: StructuredInstruction) -> StructuredInstruction:
    if not instruction.inner_instructions:
        raise DecodeError("instruction has no inner instructions")
    return instruction.inner_instructions[-1]


def decode_buy_log(data: bytes) -> Optional[DecodedPumpAmmBuyLog]:
    """Decode the buy event log, or return None if it is too short."""
    if len(data) < BUY_LOG_MIN_LENGTH:
        return None
    return DecodedPumpAmmBuyLog(
        base_amount_out=read_u64_le(data, 24),
        pool_base_token_reserves=read_u64_le(data, 56),
        pool_quote_token_reserves=read_u64_le(data, 64),
        quote_amount_in=read_u64_le(data, 72),
        coin_creator=_pubkey(data, 320),
        transaction_type=TransactionType.BUY,
    )


def decode_sell_log(data: bytes) -> DecodedPumpAmmSellLog:
    """Decode the sell event log; raises DecodeError if the data is too short."""
    return DecodedPumpAmmSellLog(
        base_amount_in=read_u64_le(data, 24),
        pool_base_token_reserves=read_u64_le(data, 56),
        pool_quote_token_reserves=read_u64_le(data, 64),
        quote_amount_out=read_u64_le(data, 120),
        coin_creator=_pubkey(data, 320),
        transaction_type=TransactionType.SELL,
    )


def _swap_accounts(instruction: StructuredInstruction, account_keys: Sequence[str]) -> SwapEventAccounts:
    return SwapEventAccounts(
        pool=_account(instruction, account_keys, 0),
        user=_account(instruction, account_keys, 1),
        base_mint=_account(instruction, account_keys, 3),
        quote_mint=_account(instruction, account_keys, 4),
    )


def decode_buy_event(
    instruction: StructuredInstruction, account_keys: Sequence[str]
) -> DecodedPumpAmmSwapEvent:
    """Decode a buy: quote mint in, base mint out, amounts from the trailing event log."""
    accounts = _swap_accounts(instruction, account_keys)
    log = decode_buy_log(_last_inner(instruction).data)
    if log is None:
        raise DecodeError("buy event log is too short")
    return DecodedPumpAmmSwapEvent(
        accounts=accounts,
        mint_in=accounts.quote_mint,
        mint_out=accounts.base_mint,
        amount_in=log.quote_amount_in,
        amount_out=log.base_amount_out,
        mint_in_reserve=log.pool_base_token_reserves,
        mint_out_reserve=log.pool_quote_token_reserves,
        event_type=TransactionType.BUY,
    )


def decode_sell_event(
    instruction: StructuredInstruction, account_keys: Sequence[str]
) -> DecodedPumpAmmSwapEvent:
    """Decode a sell: base mint in, quote mint out, amounts from the trailing event log."""
    accounts = _swap_accounts(instruction, account_keys)
    log = decode_sell_log(_last_inner(instruction).data)
    return DecodedPumpAmmSwapEvent(
        accounts=accounts,
        mint_in=accounts.base_mint,
        mint_out=accounts.quote_mint,
        amount_in=log.base_amount_in,
        amount_out=log.quote_amount_out,
        mint_in_reserve=log.pool_base_token_reserves,
        mint_out_reserve=log.pool_quote_token_reserves,
        event_type=TransactionType.SELL,
    )


def decode_pool_creation_event(
    instruction: StructuredInstruction, account_keys: Sequence[str]
) -> DecodedPumpAmmCreatePoolEvent:
    """Decode a pool creation from its accounts and instruction arguments."""
    data = instruction.data
    (index,) = _U16.unpack(_slice(data, 8, 2))
    return DecodedPumpAmmCreatePoolEvent(
        pool=_account(instruction, account_keys, 0),
        creator=_pubkey(data, 26),
        base_mint=_account(instruction, account_keys, 3),
        quote_mint=_account(instruction, account_keys, 4),
        pool_base_token_reserve=read_u64_le(data, 10),
        pool_quote_token_reserve=read_u64_le(data, 18),
        pool_base_token_account=_account(instruction, account_keys, 9),
        pool_quote_token_account=_account(instruction, account_keys, 10),
        index=index,
        event_type=TransactionType.CREATE_POOL,
    )


def decode_withdraw_event(instruction: StructuredInstruction) -> DecodedPumpAmmWithdrawEvent:
    """Decode a withdrawal from the trailing event log."""
    data = _last_inner(instruction).data
    return DecodedPumpAmmWithdrawEvent(
        pool_base_token_reserves=read_u64_le(data, 64),
        pool_quote_token_reserves=read_u64_le(data, 72),
        base_amount_out=read_u64_le(data, 80),
        quote_amount_out=read_u64_le(data, 88),
    )


def decode_deposit_event(instruction: StructuredInstruction) -> DecodedPumpAmmDepositEvent:
    """Decode a deposit from the trailing event log."""
    data = _last_inner(instruction).data
    return DecodedPumpAmmDepositEvent(
        pool_base_token_reserves=read_u64_le(data, 64),
        pool_quote_token_reserves=read_u64_le(data, 72),
        base_amount_in=read_u64_le(data, 80),
        quote_amount_in=read_u64_le(data, 88),
    )


class PumpAmmInstructionParser(InstructionParser):
    """Decodes Pump AMM instructions."""

    program_id = PROGRAM_ID
    platform = Platform.PUMP_AMM

    def decode_instruction(
        self,
        instruction: StructuredInstruction,
        account_keys: Sequence[str],
        transaction: TransactionUpdate,
    ) -> Optional[PlatformEvent]:
        discriminator = _slice(instruction.data, 0, 8)
        if discriminator == BUY_DISCRIMINATOR:
            return decode_buy_event(instruction, account_keys)
        if discriminator == SELL_DISCRIMINATOR:
            return decode_sell_event(instruction, account_keys)
        if discriminator == POOL_CREATION_DISCRIMINATOR:
            return decode_pool_creation_event(instruction, account_keys)
        if discriminator == WITHDRAW_DISCRIMINATOR:
            return decode_withdraw_event(instruction)
        if discriminator == DEPOSIT_DISCRIMINATOR:
            return decode_deposit_event(instruction)
        return None

    def decode_instructions(
        self,
        instructions: Iterable[StructuredInstruction],
        account_keys: Sequence[str],
        transaction: TransactionUpdate,
    ) -> list[DecodedEvent]:
        instructions = list(instructions)
        events = super().decode_instructions(instructions, account_keys, transaction)
        if not events:
            logger.debug("no pump amm events in instructions: %r", instructions)
        return events