"""Account-key resolution, instruction tree building and small binary helpers."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator, Sequence

from .types import (
    CompiledInstruction,
    DecodeError,
    InnerInstruction,
    StructuredInstruction,
    TokenProgramTransfer,
    Transaction,
    TransactionUpdate,
)

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_INDEX = {ch: i for i, ch in enumerate(_ALPHABET)}
_U64 = struct.Struct("<Q")
_MIN_NESTED_HEIGHT = 2
_MAX_NESTED_HEIGHT = 5


def base58_encode(data: bytes) -> str:
    """Encode bytes with the Bitcoin base58 alphabet."""
    raw = bytes(data)
    stripped = raw.lstrip(b"\x00")
    number = int.from_bytes(stripped, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    return "1" * (len(raw) - len(stripped)) + "".join(reversed(digits))


def base58_decode(text: str) -> bytes:
    """Decode a base58 string; raises DecodeError on characters outside the alphabet."""
    stripped = text.lstrip("1")
    number = 0
    for ch in stripped:
        try:
            number = number * 58 + _ALPHABET_INDEX[ch]
        except KeyError:
            raise DecodeError(f"invalid base58 character {ch!r}") from None
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * (len(text) - len(stripped)) + body


def read_u64_le(data: bytes, offset: int) -> int:
    """Read an unsigned little-endian 64-bit integer at ``offset``."""
    if offset < 0 or offset + 8 > len(data):
        raise DecodeError(f"need 8 bytes at offset {offset}, data has {len(data)}")
    return _U64.unpack_from(data, offset)[0]


def _transaction_of(update: TransactionUpdate) -> Transaction:
    if update.transaction is None:
        raise DecodeError("transaction update is empty")
    return update.transaction


def _key_at(account_keys: Sequence[str], index: int) -> str:
    if index < 0 or index >= len(account_keys):
        raise DecodeError(f"account index {index} out of range ({len(account_keys)} keys)")
    return account_keys[index]


def get_account_keys(update: TransactionUpdate) -> list[str]:
    """Static keys followed by loaded writable and loaded read-only addresses, base58 encoded."""
    tx = _transaction_of(update)
    keys = [
        *tx.message.account_keys,
        *tx.meta.loaded_writable_addresses,
        *tx.meta.loaded_readonly_addresses,
    ]
    return [base58_encode(key) for key in keys]


def _structured(ix: CompiledInstruction | InnerInstruction, stack_height: int) -> StructuredInstruction:
    return StructuredInstruction(
        account_key_indexes=bytes(ix.accounts),
        program_id_index=ix.program_id_index & 0xFF,
        data=bytes(ix.data),
        stack_height=stack_height,
    )


def _attach(parent: StructuredInstruction, inner: InnerInstruction) -> None:
    height = inner.stack_height
    if height is None:
        raise DecodeError("inner instruction has no stack height")
    if not _MIN_NESTED_HEIGHT <= height <= _MAX_NESTED_HEIGHT:
        return
    node = parent
    for _ in range(height - _MIN_NESTED_HEIGHT):
        if not node.inner_instructions:
            return
        node = node.inner_instructions[-1]
    node.inner_instructions.append(_structured(inner, height))


def structure_all_instructions(update: TransactionUpdate) -> list[StructuredInstruction]:
    """Arrange the top-level and inner instructions into a call tree by stack height."""
    tx = _transaction_of(update)
    compiled = tx.message.instructions
    groups = tx.meta.inner_instructions

    if not groups:
        return [_structured(ix, 0) for ix in compiled]

    formatted = []
    for group in groups:
        if not 0 <= group.index < len(compiled):
            raise DecodeError(f"inner instruction group refers to missing instruction {group.index}")
        parent = _structured(compiled[group.index], 1)
        for inner in group.instructions:
            _attach(parent, inner)
        formatted.append(parent)
    return formatted


def _walk(ix: StructuredInstruction) -> Iterator[StructuredInstruction]:
    yield ix
    for child in ix.inner_instructions:
        yield from _walk(child)


def filter_instructions(
    roots: Iterable[StructuredInstruction],
    account_keys: Sequence[str],
    program_ids: Iterable[str],
) -> dict[str, list[StructuredInstruction]]:
    """Collect, depth first, every instruction whose program is one of ``program_ids``."""
    wanted = set(program_ids)
    out: dict[str, list[StructuredInstruction]] = {}
    for root in roots:
        for ix in _walk(root):
            program_id = _key_at(account_keys, ix.program_id_index)
            if program_id in wanted:
                out.setdefault(program_id, []).append(ix)
    return out


def parse_token_program_transfer(
    instruction: StructuredInstruction, account_keys: Sequence[str]
) -> TokenProgramTransfer:
    """Decode a token-program transfer: source, destination, authority and amount."""
    accounts = instruction.account_key_indexes
    if len(accounts) < 3:
        raise DecodeError("transfer instruction needs three accounts")
    return TokenProgramTransfer(
        source=_key_at(account_keys, accounts[0]),
        destination=_key_at(account_keys, accounts[1]),
        authority=_key_at(account_keys, accounts[2]),
        amount=read_u64_le(instruction.data, 1),
    )