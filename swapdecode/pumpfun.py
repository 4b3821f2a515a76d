"""Decoder for the pump.fun bonding-curve program: buys, sells and token creation."""

from __future__ import annotations

import logging
import struct
from collections.abc import Sequence
from typing import Optional

from .instruction_parser import InstructionParser
from .types import (
    DecodedPumpFunCreatePoolEvent,
    DecodedPumpFunSwapEvent,
    DecodedPumpFunSwapLog,
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

PROGRAM_ID = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"
WSOL_ADDRESS = "So11111111111111111111111111111111111111112"
POOL_CREATION_DISCRIMINATOR = bytes([24, 30, 200, 40, 5, 28, 7, 119])
BUY_DISCRIMINATOR = bytes([102, 6, 61, 18, 1, 218, 235, 234])
SELL_DISCRIMINATOR = bytes([51, 230, 133, 164, 1, 127, 131, 173])

# An event log shorter than this is not the trade log; it sits one place earlier.
FULL_LOG_LENGTH = 233
_PUBKEY_LENGTH = 32
_SUSPICIOUS_NAME_LENGTH = 100
_U32 = struct.Struct("<I")


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


def _read_string(data: bytes, offset: int) -> tuple[str, int]:
    (length,) = _U32.unpack(_slice(data, offset, 4))
    if length > _SUSPICIOUS_NAME_LENGTH:
        logger.debug("unusually long string (%d bytes) in %r", length, data)
    raw = _slice(data, offset + 4, length)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"string at offset {offset} is not valid UTF-8") from exc
    return text, offset + 4 + length


def _trade_log(instruction: StructuredInstruction) -> StructuredInstruction:
    inner = instruction.inner_instructions
    if not inner:
        raise DecodeError("instruction has no inner instructions")
    last = inner[-1]
    if len(last.data) >= FULL_LOG_LENGTH:
        return last
    if len(inner) < 2:
        raise DecodeError("no trade log among the inner instructions")
    return inner[-2]


def decode_swap_log(data: bytes) -> DecodedPumpFunSwapLog:
    """Decode the trade event log shared by buys and sells."""
    return DecodedPumpFunSwapLog(
        mint=_pubkey(data, 16),
        sol_amount=read_u64_le(data, 48),
        token_amount=read_u64_le(data, 56),
        user=_pubkey(data, 65),
        virtual_sol_reserves=read_u64_le(data, 105),
        virtual_token_reserves=read_u64_le(data, 113),
    )


def _accounts(log: DecodedPumpFunSwapLog) -> SwapEventAccounts:
    return SwapEventAccounts(pool=log.mint, user=log.user, base_mint=log.mint, quote_mint=WSOL_ADDRESS)


def decode_buy_event(instruction: StructuredInstruction) -> DecodedPumpFunSwapEvent:
    """Decode a buy: SOL in, token out."""
    log = decode_swap_log(_trade_log(instruction).data)
    return DecodedPumpFunSwapEvent(
        accounts=_accounts(log),
        mint_in=WSOL_ADDRESS,
        mint_out=log.mint,
        amount_in=log.sol_amount,
        amount_out=log.token_amount,
        mint_in_reserve=log.virtual_sol_reserves,
        mint_out_reserve=log.virtual_token_reserves,
        event_type=TransactionType.BUY,
    )


def decode_sell_event(instruction: StructuredInstruction) -> DecodedPumpFunSwapEvent:
    """Decode a sell: token in, SOL out."""
    log = decode_swap_log(_trade_log(instruction).data)
    return DecodedPumpFunSwapEvent(
        accounts=_accounts(log),
        mint_in=log.mint,
        mint_out=WSOL_ADDRESS,
        amount_in=log.token_amount,
        amount_out=log.sol_amount,
        mint_in_reserve=log.virtual_token_reserves,
        mint_out_reserve=log.virtual_sol_reserves,
        event_type=TransactionType.SELL,
    )


def decode_pool_creation_event(
    instruction: StructuredInstruction, account_keys: Sequence[str]
) -> DecodedPumpFunCreatePoolEvent:
    """Decode a token creation: name, symbol, uri and creator from the arguments."""
    data = instruction.data
    if len(data) < 8:
        logger.debug("short creation instruction: %r", instruction)
    name, offset = _read_string(data, 8)
    symbol, offset = _read_string(data, offset)
    uri, offset = _read_string(data, offset)
    creator = _pubkey(data, offset)

    # The resolved keys are re-encoded from their text form.
    def encoded_key(position: int) -> str:
        return base58_encode(_account(instruction, account_keys, position).encode())

    return DecodedPumpFunCreatePoolEvent(
        name=name,
        symbol=symbol,
        uri=uri,
        creator=creator,
        base_mint=encoded_key(0),
        quote_mint=WSOL_ADDRESS,
        bonding_curve=encoded_key(2),
        associated_bonding_curve=encoded_key(3),
        event_type=TransactionType.CREATE_POOL,
    )


class PumpFunInstructionParser(InstructionParser):
    """Decodes pump.fun instructions."""

    program_id = PROGRAM_ID
    platform = Platform.PUMP_FUN

    def decode_instruction(
        self,
        instruction: StructuredInstruction,
        account_keys: Sequence[str],
        transaction: TransactionUpdate,
    ) -> Optional[PlatformEvent]:
        discriminator = _slice(instruction.data, 0, 8)
        if discriminator == BUY_DISCRIMINATOR:
            return decode_buy_event(instruction)
        if discriminator == SELL_DISCRIMINATOR:
            return decode_sell_event(instruction)
        if discriminator == POOL_CREATION_DISCRIMINATOR:
            return decode_pool_creation_event(instruction, account_keys)
        return None

    def decode_instructions(self, instructions, account_keys, transaction):
        return super().decode_instructions(instructions, account_keys, transaction)