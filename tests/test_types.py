import json

import pytest

from swapdecode.types import (
    AddressTableLookup,
    CompiledInstruction,
    DecodeError,
    InnerInstruction,
    InnerInstructionGroup,
    Message,
    MessageHeader,
    StructuredInstruction,
    TokenBalance,
    Transaction,
    TransactionMeta,
    TransactionType,
    UiTokenAmount,
)


def _sample_transaction():
    return Transaction(
        signatures=[bytes(range(64))],
        message=Message(
            header=MessageHeader(1, 0, 2),
            account_keys=[bytes([1]) * 32, bytes([2]) * 32],
            instructions=[CompiledInstruction(program_id_index=1, accounts=b"\x00", data=b"\x09\x01")],
            address_table_lookups=[
                AddressTableLookup(account_key=bytes([7]) * 32, writable_indexes=b"\x01", readonly_indexes=b"")
            ],
            versioned=True,
        ),
        meta=TransactionMeta(
            inner_instructions=[
                InnerInstructionGroup(
                    index=0,
                    instructions=[InnerInstruction(program_id_index=0, accounts=b"\x01", data=b"x", stack_height=2)],
                )
            ],
            loaded_writable_addresses=[bytes([3]) * 32],
            loaded_readonly_addresses=[bytes([4]) * 32],
            pre_balances=[10, 20],
            post_balances=[5, 25],
            pre_token_balances=[
                TokenBalance(
                    account_index=1,
                    mint="MintA",
                    owner="OwnerA",
                    ui_token_amount=UiTokenAmount(ui_amount=1.5, decimals=6, amount="1500000", ui_amount_string="1.5"),
                )
            ],
            post_token_balances=[TokenBalance(account_index=1, mint="MintA")],
        ),
    )


def test_round_trip_through_dict():
    tx = _sample_transaction()
    assert Transaction.from_dict(tx.to_dict()) == tx


def test_round_trip_through_json():
    tx = _sample_transaction()
    text = json.dumps(tx.to_dict())
    assert Transaction.from_dict(json.loads(text)) == tx


def test_to_dict_turns_bytes_into_integer_lists():
    tx = _sample_transaction()
    data = tx.to_dict()
    assert data["signatures"] == [list(range(64))]
    assert data["message"]["account_keys"][0] == [1] * 32
    assert data["meta"]["post_token_balances"][0]["ui_token_amount"] is None


def test_signature_is_first_signature():
    tx = _sample_transaction()
    assert tx.signature == bytes(range(64))
    assert Transaction().signature == b""


def test_from_dict_missing_field_raises_decode_error():
    data = _sample_transaction().to_dict()
    del data["meta"]
    with pytest.raises(DecodeError):
        Transaction.from_dict(data)


def test_from_dict_bad_bytes_raises_decode_error():
    data = _sample_transaction().to_dict()
    data["signatures"] = [5]
    with pytest.raises(DecodeError):
        Transaction.from_dict(data)


def test_decode_error_is_value_error():
    with pytest.raises(ValueError):
        Transaction.from_dict({})


def test_transaction_type_names():
    assert TransactionType("CreatePool") is TransactionType.CREATE_POOL
    assert TransactionType("Buy") is TransactionType.BUY


def test_structured_instruction_defaults_and_equality():
    a = StructuredInstruction(account_key_indexes=b"\x01", program_id_index=2, data=b"d")
    b = StructuredInstruction(account_key_indexes=b"\x01", program_id_index=2, data=b"d")
    assert a == b
    assert a.inner_instructions == []
    assert a.stack_height == 0
    a.inner_instructions.append(b)
    assert b.inner_instructions == []