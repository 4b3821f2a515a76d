import pytest

from swapdecode.types import (
    CompiledInstruction,
    DecodeError,
    InnerInstruction,
    InnerInstructionGroup,
    Message,
    StructuredInstruction,
    Transaction,
    TransactionMeta,
    TransactionUpdate,
)
from swapdecode.utils import (
    base58_decode,
    base58_encode,
    filter_instructions,
    get_account_keys,
    parse_token_program_transfer,
    read_u64_le,
    structure_all_instructions,
)

PUMP_AMM_PROGRAM_ID = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"
WSOL_ADDRESS = "So11111111111111111111111111111111111111112"


def _update(compiled, groups=(), keys=(), writable=(), readonly=()):
    return TransactionUpdate(
        slot=1,
        transaction=Transaction(
            message=Message(account_keys=list(keys), instructions=list(compiled)),
            meta=TransactionMeta(
                inner_instructions=list(groups),
                loaded_writable_addresses=list(writable),
                loaded_readonly_addresses=list(readonly),
            ),
        ),
    )


def _inner(height, data):
    return InnerInstruction(program_id_index=0, accounts=b"\x00", data=data, stack_height=height)


def _ix(program, children=()):
    return StructuredInstruction(
        account_key_indexes=b"", program_id_index=program, data=b"", inner_instructions=list(children)
    )


def test_base58_known_vector():
    assert base58_encode(b"Hello World!") == "2NEpo7TZRRrLZSi2U"


def test_base58_leading_zeros_and_empty():
    assert base58_encode(b"\x00\x00") == "11"
    assert base58_encode(b"") == ""


@pytest.mark.parametrize("address", [PUMP_AMM_PROGRAM_ID, WSOL_ADDRESS])
def test_base58_program_addresses_are_32_bytes(address):
    raw = base58_decode(address)
    assert len(raw) == 32
    assert base58_encode(raw) == address


@pytest.mark.parametrize("raw", [b"\x00", b"\x00\x00\xff", bytes(range(40)), b"\xff" * 32])
def test_base58_round_trip(raw):
    assert base58_decode(base58_encode(raw)) == raw


def test_base58_rejects_invalid_character():
    with pytest.raises(DecodeError):
        base58_decode("0OIl")


def test_read_u64_le():
    value = 2**64 - 2
    data = b"\xaa" + value.to_bytes(8, "little")
    assert read_u64_le(data, 1) == value


@pytest.mark.parametrize("offset", [-1, 2, 10])
def test_read_u64_le_out_of_range(offset):
    with pytest.raises(DecodeError):
        read_u64_le(bytes(9), offset)


def test_get_account_keys_order():
    keys = [bytes([1]) * 32, bytes([2]) * 32]
    writable = [bytes([9]) * 32]
    readonly = [bytes([10]) * 32]
    result = get_account_keys(_update([], keys=keys, writable=writable, readonly=readonly))
    assert [base58_decode(k) for k in result] == keys + writable + readonly


def test_get_account_keys_empty_update():
    with pytest.raises(DecodeError):
        get_account_keys(TransactionUpdate(slot=3))


def test_structure_without_inner_instructions():
    compiled = [
        CompiledInstruction(program_id_index=0, accounts=b"\x00", data=b"a"),
        CompiledInstruction(program_id_index=1, accounts=b"\x01", data=b"b"),
    ]
    result = structure_all_instructions(_update(compiled))
    assert [ix.data for ix in result] == [b"a", b"b"]
    assert all(ix.stack_height == 0 and ix.inner_instructions == [] for ix in result)


def test_structure_builds_nested_tree():
    compiled = [
        CompiledInstruction(program_id_index=0, data=b"a"),
        CompiledInstruction(program_id_index=1, data=b"b"),
    ]
    group = InnerInstructionGroup(
        index=1,
        instructions=[_inner(2, b"c"), _inner(3, b"d"), _inner(4, b"e"), _inner(5, b"f"), _inner(2, b"g")],
    )
    result = structure_all_instructions(_update(compiled, [group]))
    assert len(result) == 1
    parent = result[0]
    assert parent.data == b"b"
    assert parent.stack_height == 1
    assert [ix.data for ix in parent.inner_instructions] == [b"c", b"g"]
    c = parent.inner_instructions[0]
    d = c.inner_instructions[0]
    e = d.inner_instructions[0]
    f = e.inner_instructions[0]
    assert (d.data, e.data, f.data) == (b"d", b"e", b"f")
    assert (c.stack_height, d.stack_height, e.stack_height, f.stack_height) == (2, 3, 4, 5)


def test_structure_drops_orphans_and_unsupported_heights():
    compiled = [CompiledInstruction(program_id_index=0, data=b"a")]
    group = InnerInstructionGroup(index=0, instructions=[_inner(3, b"x"), _inner(6, b"y"), _inner(1, b"z")])
    result = structure_all_instructions(_update(compiled, [group]))
    assert result[0].inner_instructions == []


def test_structure_missing_stack_height_raises():
    compiled = [CompiledInstruction(program_id_index=0, data=b"a")]
    group = InnerInstructionGroup(index=0, instructions=[_inner(None, b"x")])
    with pytest.raises(DecodeError):
        structure_all_instructions(_update(compiled, [group]))


def test_structure_group_index_out_of_range():
    compiled = [CompiledInstruction(program_id_index=0, data=b"a")]
    group = InnerInstructionGroup(index=4, instructions=[])
    with pytest.raises(DecodeError):
        structure_all_instructions(_update(compiled, [group]))


def test_filter_instructions_depth_first():
    grandchild = _ix(0)
    child = _ix(1, [grandchild])
    root = _ix(0, [child])
    other = _ix(2)
    result = filter_instructions([root, other], ["A", "B", "C"], {"A", "C"})
    assert result["A"] == [root, grandchild]
    assert result["A"][0] is root
    assert result["C"] == [other]
    assert "B" not in result


def test_filter_instructions_bad_program_index():
    with pytest.raises(DecodeError):
        filter_instructions([_ix(5)], ["A"], {"A"})


def test_parse_token_program_transfer():
    amount = 123456789
    ix = StructuredInstruction(
        account_key_indexes=bytes([2, 0, 1]),
        program_id_index=0,
        data=bytes([3]) + amount.to_bytes(8, "little"),
    )
    transfer = parse_token_program_transfer(ix, ["A", "B", "C"])
    assert (transfer.source, transfer.destination, transfer.authority) == ("C", "A", "B")
    assert transfer.amount == amount


def test_parse_token_program_transfer_short_data():
    ix = StructuredInstruction(account_key_indexes=bytes([0, 1, 2]), program_id_index=0, data=bytes([3, 1]))
    with pytest.raises(DecodeError):
        parse_token_program_transfer(ix, ["A", "B", "C"])


def test_parse_token_program_transfer_missing_accounts():
    ix = StructuredInstruction(account_key_indexes=bytes([0, 1]), program_id_index=0, data=bytes(9))
    with pytest.raises(DecodeError):
        parse_token_program_transfer(ix, ["A", "B", "C"])