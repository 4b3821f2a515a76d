import struct

import pytest

from swapdecode.core import TransactionParser
from swapdecode.pump_amm import BUY_DISCRIMINATOR
from swapdecode.pump_amm import PROGRAM_ID as PUMP_AMM_ID
from swapdecode.pumpfun import PROGRAM_ID as PUMP_FUN_ID
from swapdecode.raydium import PROGRAM_ID as RAYDIUM_ID
from swapdecode.raydium import RaydiumInstructionParser
from swapdecode.types import (
    CompiledInstruction,
    DecodeError,
    InnerInstruction,
    InnerInstructionGroup,
    Message,
    Platform,
    Transaction,
    TransactionMeta,
    TransactionType,
    TransactionUpdate,
)
from swapdecode.utils import base58_decode, base58_encode

STATIC_KEYS = [bytes([n]) * 32 for n in range(1, 7)]
PROGRAM_INDEX = len(STATIC_KEYS)


def buy_log(base_out, base_res, quote_res, quote_in):
    data = bytearray(352)
    struct.pack_into("<Q", data, 24, base_out)
    struct.pack_into("<Q", data, 56, base_res)
    struct.pack_into("<Q", data, 64, quote_res)
    struct.pack_into("<Q", data, 72, quote_in)
    return bytes(data)


def pump_amm_buy_update(program_id=PUMP_AMM_ID):
    keys = STATIC_KEYS + [base58_decode(program_id)]
    message = Message(
        account_keys=keys,
        instructions=[
            CompiledInstruction(
                program_id_index=PROGRAM_INDEX,
                accounts=bytes([1, 2, 3, 4, 5]),
                data=BUY_DISCRIMINATOR + bytes(16),
            )
        ],
    )
    meta = TransactionMeta(
        inner_instructions=[
            InnerInstructionGroup(
                index=0,
                instructions=[
                    InnerInstruction(
                        program_id_index=PROGRAM_INDEX,
                        data=buy_log(11, 22, 33, 44),
                        stack_height=2,
                    )
                ],
            )
        ]
    )
    return TransactionUpdate(slot=7, transaction=Transaction(signatures=[bytes(64)], message=message, meta=meta))


def test_default_program_ids():
    assert TransactionParser().program_ids == {PUMP_AMM_ID, PUMP_FUN_ID}


def test_instructions_grouped_by_program():
    parser = TransactionParser()
    update = pump_amm_buy_update()
    keys = [base58_encode(k) for k in update.transaction.message.account_keys]
    grouped = parser.get_parsers_and_instructions(update, keys)
    assert list(grouped) == [PUMP_AMM_ID]
    assert len(grouped[PUMP_AMM_ID]) == 2
    assert grouped[PUMP_AMM_ID][0].data[:8] == BUY_DISCRIMINATOR


def test_decode_pump_amm_buy():
    events = TransactionParser().decode_transaction(pump_amm_buy_update())
    assert len(events) == 1
    decoded = events[0]
    assert decoded.platform is Platform.PUMP_AMM
    event = decoded.event
    assert event.event_type is TransactionType.BUY
    assert event.amount_in == 44
    assert event.amount_out == 11
    assert event.mint_in_reserve == 22
    assert event.mint_out_reserve == 33
    assert event.accounts.pool == base58_encode(STATIC_KEYS[1])
    assert event.mint_out == base58_encode(STATIC_KEYS[4])
    assert event.mint_in == base58_encode(STATIC_KEYS[5])


def test_unregistered_program_yields_nothing():
    update = pump_amm_buy_update(program_id=RAYDIUM_ID)
    assert TransactionParser().decode_transaction(update) == []


def test_custom_parser_set():
    parser = TransactionParser([RaydiumInstructionParser()])
    assert parser.program_ids == {RAYDIUM_ID}
    assert parser.decode_transaction(pump_amm_buy_update()) == []


def test_empty_update_raises():
    with pytest.raises(DecodeError):
        TransactionParser().decode_transaction(TransactionUpdate(slot=1))