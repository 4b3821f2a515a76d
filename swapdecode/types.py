"""Transaction data model, decoded events and output records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Optional, Union


class DecodeError(ValueError):
    """Raised when transaction or instruction data does not have the expected shape."""


class TransactionType(Enum):
    BUY = "Buy"
    SELL = "Sell"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    CREATE_POOL = "CreatePool"


class Platform(Enum):
    PUMP_AMM = "pump_amm"
    PUMP_FUN = "pumpfun"
    RAYDIUM = "raydium"


# ---------------------------------------------------------------------------
# Raw transaction model
# ---------------------------------------------------------------------------


@dataclass
class UiTokenAmount:
    ui_amount: float = 0.0
    decimals: int = 0
    amount: str = "0"
    ui_amount_string: str = "0"


@dataclass
class TokenBalance:
    account_index: int
    mint: str
    owner: str = ""
    program_id: str = ""
    ui_token_amount: Optional[UiTokenAmount] = None


@dataclass
class CompiledInstruction:
    program_id_index: int
    accounts: bytes = b""
    data: bytes = b""


@dataclass
class InnerInstruction:
    program_id_index: int
    accounts: bytes = b""
    data: bytes = b""
    stack_height: Optional[int] = None


@dataclass
class InnerInstructionGroup:
    index: int
    instructions: list[InnerInstruction] = field(default_factory=list)


@dataclass
class MessageHeader:
    num_required_signatures: int = 0
    num_readonly_signed_accounts: int = 0
    num_readonly_unsigned_accounts: int = 0


@dataclass
class AddressTableLookup:
    account_key: bytes
    writable_indexes: bytes = b""
    readonly_indexes: bytes = b""


@dataclass
class Message:
    header: MessageHeader = field(default_factory=MessageHeader)
    account_keys: list[bytes] = field(default_factory=list)
    instructions: list[CompiledInstruction] = field(default_factory=list)
    address_table_lookups: list[AddressTableLookup] = field(default_factory=list)
    versioned: bool = False


@dataclass
class TransactionMeta:
    inner_instructions: list[InnerInstructionGroup] = field(default_factory=list)
    loaded_writable_addresses: list[bytes] = field(default_factory=list)
    loaded_readonly_addresses: list[bytes] = field(default_factory=list)
    pre_balances: list[int] = field(default_factory=list)
    post_balances: list[int] = field(default_factory=list)
    pre_token_balances: list[TokenBalance] = field(default_factory=list)
    post_token_balances: list[TokenBalance] = field(default_factory=list)


def _plain(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, list, tuple)):
        return bytes(value)
    raise TypeError(f"expected a byte sequence, got {type(value).__name__}")


def _parse_header(d: dict) -> MessageHeader:
    return MessageHeader(
        num_required_signatures=int(d["num_required_signatures"]),
        num_readonly_signed_accounts=int(d["num_readonly_signed_accounts"]),
        num_readonly_unsigned_accounts=int(d["num_readonly_unsigned_accounts"]),
    )


def _parse_compiled(d: dict) -> CompiledInstruction:
    return CompiledInstruction(
        program_id_index=int(d["program_id_index"]),
        accounts=_as_bytes(d["accounts"]),
        data=_as_bytes(d["data"]),
    )


def _parse_lookup(d: dict) -> AddressTableLookup:
    return AddressTableLookup(
        account_key=_as_bytes(d["account_key"]),
        writable_indexes=_as_bytes(d["writable_indexes"]),
        readonly_indexes=_as_bytes(d["readonly_indexes"]),
    )


def _parse_message(d: dict) -> Message:
    return Message(
        header=_parse_header(d["header"]),
        account_keys=[_as_bytes(k) for k in d["account_keys"]],
        instructions=[_parse_compiled(i) for i in d["instructions"]],
        address_table_lookups=[_parse_lookup(x) for x in d["address_table_lookups"]],
        versioned=bool(d["versioned"]),
    )


def _parse_inner(d: dict) -> InnerInstruction:
    height = d.get("stack_height")
    return InnerInstruction(
        program_id_index=int(d["program_id_index"]),
        accounts=_as_bytes(d["accounts"]),
        data=_as_bytes(d["data"]),
        stack_height=None if height is None else int(height),
    )


def _parse_group(d: dict) -> InnerInstructionGroup:
    return InnerInstructionGroup(
        index=int(d["index"]),
        instructions=[_parse_inner(i) for i in d["instructions"]],
    )


def _parse_ui_amount(d: Optional[dict]) -> Optional[UiTokenAmount]:
    if d is None:
        return None
    return UiTokenAmount(
        ui_amount=float(d["ui_amount"]),
        decimals=int(d["decimals"]),
        amount=str(d["amount"]),
        ui_amount_string=str(d["ui_amount_string"]),
    )


def _parse_balance(d: dict) -> TokenBalance:
    return TokenBalance(
        account_index=int(d["account_index"]),
        mint=str(d["mint"]),
        owner=str(d["owner"]),
        program_id=str(d["program_id"]),
        ui_token_amount=_parse_ui_amount(d.get("ui_token_amount")),
    )


def _parse_meta(d: dict) -> TransactionMeta:
    return TransactionMeta(
        inner_instructions=[_parse_group(g) for g in d["inner_instructions"]],
        loaded_writable_addresses=[_as_bytes(a) for a in d["loaded_writable_addresses"]],
        loaded_readonly_addresses=[_as_bytes(a) for a in d["loaded_readonly_addresses"]],
        pre_balances=[int(b) for b in d["pre_balances"]],
        post_balances=[int(b) for b in d["post_balances"]],
        pre_token_balances=[_parse_balance(b) for b in d["pre_token_balances"]],
        post_token_balances=[_parse_balance(b) for b in d["post_token_balances"]],
    )


@dataclass
class Transaction:
    signatures: list[bytes] = field(default_factory=list)
    message: Message = field(default_factory=Message)
    meta: TransactionMeta = field(default_factory=TransactionMeta)

    @property
    def signature(self) -> bytes:
        """The first signature, which identifies the transaction."""
        return self.signatures[0] if self.signatures else b""

    def to_dict(self) -> dict:
        """Plain, JSON-friendly form; byte strings become lists of integers."""
        return _plain(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        """Build a transaction from the form produced by :meth:`to_dict`."""
        try:
            return cls(
                signatures=[_as_bytes(s) for s in data["signatures"]],
                message=_parse_message(data["message"]),
                meta=_parse_meta(data["meta"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"malformed transaction: {exc!r}") from exc


@dataclass
class TransactionUpdate:
    slot: int
    transaction: Optional[Transaction] = None


# ---------------------------------------------------------------------------
# Instruction tree
# ---------------------------------------------------------------------------


@dataclass
class StructuredInstruction:
    account_key_indexes: bytes
    program_id_index: int
    data: bytes
    inner_instructions: list["StructuredInstruction"] = field(default_factory=list)
    stack_height: int = 0


@dataclass
class TokenProgramTransfer:
    source: str
    destination: str
    authority: str
    amount: int


# ---------------------------------------------------------------------------
# Decoded events
# ---------------------------------------------------------------------------


@dataclass
class SwapEventAccounts:
    pool: str
    user: str
    base_mint: str
    quote_mint: str


@dataclass
class DecodedPumpAmmBuyLog:
    quote_amount_in: int
    base_amount_out: int
    pool_base_token_reserves: int
    pool_quote_token_reserves: int
    coin_creator: str
    transaction_type: TransactionType = TransactionType.BUY


@dataclass
class DecodedPumpAmmSellLog:
    quote_amount_out: int
    base_amount_in: int
    pool_base_token_reserves: int
    pool_quote_token_reserves: int
    coin_creator: str
    transaction_type: TransactionType = TransactionType.SELL


@dataclass
class DecodedPumpAmmWithdrawEvent:
    pool_base_token_reserves: int
    pool_quote_token_reserves: int
    base_amount_out: int
    quote_amount_out: int


@dataclass
class DecodedPumpAmmDepositEvent:
    pool_base_token_reserves: int
    pool_quote_token_reserves: int
    base_amount_in: int
    quote_amount_in: int


@dataclass
class DecodedPumpAmmCreatePoolEvent:
    pool: str
    creator: str
    base_mint: str
    quote_mint: str
    pool_base_token_reserve: int
    pool_quote_token_reserve: int
    pool_base_token_account: str
    pool_quote_token_account: str
    index: int
    event_type: TransactionType = TransactionType.CREATE_POOL


@dataclass
class DecodedPumpAmmSwapEvent:
    accounts: SwapEventAccounts
    mint_in: str
    mint_out: str
    amount_in: int
    amount_out: int
    mint_in_reserve: int
    mint_out_reserve: int
    event_type: TransactionType


@dataclass
class DecodedPumpFunSwapLog:
    mint: str
    sol_amount: int
    token_amount: int
    user: str
    virtual_sol_reserves: int
    virtual_token_reserves: int


@dataclass
class DecodedPumpFunSwapEvent:
    accounts: SwapEventAccounts
    mint_in: str
    mint_out: str
    amount_in: int
    amount_out: int
    mint_in_reserve: int
    mint_out_reserve: int
    event_type: TransactionType


@dataclass
class DecodedPumpFunCreatePoolEvent:
    name: str
    symbol: str
    uri: str
    creator: str
    base_mint: str
    quote_mint: str
    bonding_curve: str
    associated_bonding_curve: str
    event_type: TransactionType = TransactionType.CREATE_POOL


@dataclass
class DecodedRaydiumSwapEvent:
    pool: str
    user: str
    mint_in: str
    mint_out: str
    in_decimals: int
    out_decimals: int
    mint_in_reserve: int
    mint_out_reserve: int
    amount_in: int
    amount_out: int


@dataclass
class DecodedRaydiumCreatePoolEvent:
    pool: str
    user: str
    base_mint: str
    quote_mint: str
    base_amount: int
    quote_amount: int


PlatformEvent = Union[
    DecodedPumpAmmSwapEvent,
    DecodedPumpAmmCreatePoolEvent,
    DecodedPumpAmmWithdrawEvent,
    DecodedPumpAmmDepositEvent,
    DecodedPumpFunSwapEvent,
    DecodedPumpFunCreatePoolEvent,
    DecodedRaydiumSwapEvent,
    DecodedRaydiumCreatePoolEvent,
]


@dataclass
class DecodedEvent:
    """An event decoded from one instruction, tagged with its platform."""

    platform: Platform
    event: PlatformEvent


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------


@dataclass
class Reserves:
    base: int
    quote: int


@dataclass
class Swap:
    txid: str
    tx_index: int
    pool: str
    user: str
    mint_in: str
    mint_out: str
    mint_in_reserve: str
    mint_out_reserve: str
    in_decimals: int
    out_decimals: int
    amount_in: str
    amount_out: str
    platform: str
    transaction_type: str


@dataclass
class TransactionBase:
    txid: str
    tx_index: int
    user: str
    transaction_type: str
    platform: str
    slot: int
    timestamp: int
    trading_platform: Optional[str] = None


@dataclass
class TransactionEvent:
    txid: str
    tx_index: int
    user: str
    base_mint: str
    quote_mint: str
    direction: str
    reserves: Reserves
    base_decimals: int
    quote_decimals: int
    platform: str
    amount_in: int
    amount_out: int
    pool: Optional[str] = None


@dataclass
class PumpAmmDepositEvent:
    txid: str
    tx_index: int
    pool: str
    user: str
    base_mint: str
    quote_mint: str
    pool_base_token_reserves: str
    pool_quote_token_reserves: str
    base_amount_in: str
    quote_amount_in: str
    transaction_type: str
    platform: str


@dataclass
class PumpAmmWithdrawEvent:
    txid: str
    tx_index: int
    pool: str
    user: str
    base_mint: str
    quote_mint: str
    pool_base_token_reserves: str
    pool_quote_token_reserves: str
    base_amount_out: str
    quote_amount_out: str
    transaction_type: str
    platform: str


@dataclass
class PumpAmmSwap:
    pool: str
    mint_in: str
    mint_out: str
    mint_in_reserve: int
    mint_out_reserve: int
    in_decimals: int
    out_decimals: int
    amount_in: int
    amount_out: int
    platform: str
    transaction_type: str


@dataclass
class PumpAmmPoolCreate:
    pool: str
    creator: str
    base_mint: str
    quote_mint: str
    pool_base_token_reserve: int
    pool_quote_token_reserve: int
    pool_base_token_account: str
    pool_quote_token_account: str
    base_decimals: int
    quote_decimals: int
    index: int
    platform: str
    transaction_type: str


@dataclass
class PumpFunSwap:
    base_mint: str
    quote_mint: str
    direction: str
    base_decimals: int
    quote_decimals: int
    amount_in: int
    amount_out: int
    virtual_token_reserves: int
    virtual_sol_reserves: int
    transaction_type: str
    platform: str


@dataclass
class PumpFunPoolCreate:
    base_mint: str
    quote_mint: str
    base_decimals: int
    quote_decimals: int
    name: str
    symbol: str
    uri: str
    transaction_type: str
    platform: str


@dataclass
class RaydiumSwap:
    pool: str
    mint_in: str
    mint_out: str
    platform: str
    transaction_type: str
    in_decimals: int
    out_decimals: int
    mint_in_reserve: int
    mint_out_reserve: int
    amount_in: int
    amount_out: int


@dataclass
class RaydiumPoolCreate:
    pool: str
    base_mint: str
    quote_mint: str
    base_decimals: int
    quote_decimals: int
    base_amount: int
    quote_amount: int
    transaction_type: str
    platform: str