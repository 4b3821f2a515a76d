"""Decoder for the Raydium AMM program: swap-base-in and pool initialisation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from .instruction_parser import InstructionParser
from .types import (
    DecodedRaydiumCreatePoolEvent,
    DecodedRaydiumSwapEvent,
    DecodeError,
    Platform,
    PlatformEvent,
    StructuredInstruction,
    TokenBalance,
    TransactionMeta,
    TransactionUpdate,
    UiTokenAmount,
)
from .utils import parse_token_program_transfer

PROGRAM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
WSOL_ADDRESS = "So11111111111111111111111111111111111111112"
POOL_CREATION_DISCRIMINATOR = 1
SWAP_BASE_IN_DISCRIMINATOR = 9


def _account(instruction: StructuredInstruction, account_keys: Sequence[str], position: int) -> str:
    indexes = instruction.account_key_indexes
    if position >= len(indexes):
        raise DecodeError(f"instruction has no account at position {position}")
    index = indexes[position]
    if index >= len(account_keys):
        raise DecodeError(f"account index {index} out of range ({len(account_keys)} keys)")
    return account_keys[index]


def _meta(transaction: TransactionUpdate) -> TransactionMeta:
    if transaction.transaction is None:
        raise DecodeError("transaction update is empty")
    return transaction.transaction.meta


def _find_balance(meta: TransactionMeta, account_index: int) -> Optional[TokenBalance]:
    """Post-transaction balance of the account, falling back to the pre-transaction one."""
    for balances in (meta.post_token_balances, meta.pre_token_balances):
        match = next((b for b in balances if b.account_index == account_index), None)
        if match is not None:
            return match
    return None


def _ui_amount(balance: TokenBalance) -> UiTokenAmount:
    if balance.ui_token_amount is None:
        raise DecodeError(f"token balance of account {balance.account_index} has no amount")
    return balance.ui_token_amount


def _raw_amount(balance: TokenBalance) -> int:
    text = _ui_amount(balance).amount
    try:
        value = int(text)
    except ValueError as exc:
        raise DecodeError(f"token amount {text!r} is not an integer") from exc
    if value < 0:
        raise DecodeError(f"token amount {text!r} is negative")
    return value


def decode_pool_creation_event(
    instruction: StructuredInstruction, account_keys: Sequence[str]
) -> DecodedRaydiumCreatePoolEvent:
    """Decode a pool initialisation; the amounts come from the first two token transfers."""
    try:
        token_program_index = list(account_keys).index(TOKEN_PROGRAM_ID)
    except ValueError:
        raise DecodeError("token program is not among the account keys") from None
    transfers = [
        ix
        for ix in instruction.inner_instructions
        if ix.program_id_index == token_program_index & 0xFF
    ]
    if len(transfers) < 2:
        raise DecodeError("pool creation needs two token transfers")
    base_transfer = parse_token_program_transfer(transfers[0], account_keys)
    quote_transfer = parse_token_program_transfer(transfers[1], account_keys)
    return DecodedRaydiumCreatePoolEvent(
        pool=_account(instruction, account_keys, 4),
        user=_account(instruction, account_keys, 0),
        base_mint=_account(instruction, account_keys, 8),
        quote_mint=_account(instruction, account_keys, 9),
        base_amount=base_transfer.amount,
        quote_amount=quote_transfer.amount,
    )


def decode_swap_base_in(
    instruction: StructuredInstruction,
    account_keys: Sequence[str],
    transaction: TransactionUpdate,
) -> DecodedRaydiumSwapEvent:
    """Decode a swap from its two inner transfers and the vaults' token balances."""
    inner = instruction.inner_instructions
    if len(inner) < 2:
        raise DecodeError("swap needs two inner transfers")
    in_transfer = parse_token_program_transfer(inner[0], account_keys)
    out_transfer = parse_token_program_transfer(inner[1], account_keys)

    meta = _meta(transaction)
    in_balance = _find_balance(meta, inner[0].account_key_indexes[1])
    if in_balance is None:
        raise DecodeError("no token balance for the input vault")
    out_balance = _find_balance(meta, inner[1].account_key_indexes[0])
    if out_balance is None:
        raise DecodeError("no token balance for the output vault")

    return DecodedRaydiumSwapEvent(
        pool=_account(instruction, account_keys, 1),
        user=in_transfer.authority,
        mint_in=in_balance.mint,
        mint_out=out_balance.mint,
        in_decimals=_ui_amount(in_balance).decimals & 0xFF,
        out_decimals=_ui_amount(out_balance).decimals & 0xFF,
        mint_in_reserve=_raw_amount(in_balance),
        mint_out_reserve=_raw_amount(out_balance),
        amount_in=in_transfer.amount,
        amount_out=out_transfer.amount,
    )


class RaydiumInstructionParser(InstructionParser):
    """Decodes Raydium AMM instructions."""

    program_id = PROGRAM_ID
    platform = Platform.RAYDIUM

    def decode_instruction(
        self,
        instruction: StructuredInstruction,
        account_keys: Sequence[str],
        transaction: TransactionUpdate,
    ) -> Optional[PlatformEvent]:
        if not instruction.data:
            raise DecodeError("instruction has no data")
        discriminator = instruction.data[0]
        if discriminator == SWAP_BASE_IN_DISCRIMINATOR:
            return decode_swap_base_in(instruction, account_keys, transaction)
        if discriminator == POOL_CREATION_DISCRIMINATOR:
            return decode_pool_creation_event(instruction, account_keys)
        return None

    def decode_instructions(self, instructions, account_keys, transaction):
        return super().decode_instructions(instructions, account_keys, transaction)