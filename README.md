# swapdecode

swapdecode turns Solana transaction updates into structured DEX events. It
uses only the standard library. It knows the instructions of three programs
and decodes them into dataclasses:

- **Pump AMM** (`swapdecode.pump_amm`): buys, sells, pool creation, deposits
  and withdrawals
- **Pump.fun** (`swapdecode.pumpfun`): bonding-curve buys, sells and token
  creation
- **Raydium AMM** (`swapdecode.raydium`): `swap_base_in` and pool
  initialisation

## The transaction model

A `swapdecode.types.TransactionUpdate` holds a slot and an optional
`Transaction`. A `Transaction` holds its signatures, a `Message` (account
keys and compiled instructions) and a `TransactionMeta` (inner instructions
with stack heights, loaded writable and read-only addresses, and pre- and
post-transaction token balances).

`Transaction.to_dict()` gives a plain, JSON-friendly form, with byte strings
as lists of integers. `Transaction.from_dict()` reads that form back, taking
bytes or integer lists. It raises `DecodeError` if a field is missing or
malformed.

```python
from swapdecode.types import Transaction, TransactionUpdate

update = TransactionUpdate(slot=123, transaction=Transaction.from_dict(data))
```

## Decoding a transaction

```python
from swapdecode.core import TransactionParser

parser = TransactionParser()
for event in parser.decode_transaction(update):
    print(event.platform, event.event)
```

`decode_transaction` works in four steps:

1. It resolves the account keys (static keys, then loaded writable, then
   loaded read-only addresses, all base58 encoded).
2. It rebuilds the instruction tree from the stack heights.
3. It collects the instructions of each registered program, walking the tree
   depth first.
4. It hands them to that program's parser.

Each result is a `DecodedEvent` with a `Platform` and the program-specific
event, such as `DecodedPumpAmmSwapEvent`, `DecodedPumpFunCreatePoolEvent` or
`DecodedRaydiumSwapEvent`.

By default the parser registers the Pump AMM and Pump.fun parsers only. To
decode Raydium as well, pass the parsers you want:

```python
from swapdecode.core import TransactionParser
from swapdecode.pump_amm import PumpAmmInstructionParser
from swapdecode.pumpfun import PumpFunInstructionParser
from swapdecode.raydium import RaydiumInstructionParser

parser = TransactionParser(
    [PumpAmmInstructionParser(), PumpFunInstructionParser(), RaydiumInstructionParser()]
)
```

Every parser subclasses `swapdecode.instruction_parser.InstructionParser`.
It sets `program_id` and `platform` and implements `decode_instruction`,
which returns `None` for instructions it does not recognise.

## Working with the pieces

`swapdecode.utils` provides:

- `get_account_keys(update)`: the resolved account keys.
- `structure_all_instructions(update)`: the instruction tree.
- `filter_instructions(roots, account_keys, program_ids)`: instructions
  grouped by program id.
- `parse_token_program_transfer(instruction, account_keys)`: decodes a token
  transfer.
- `base58_encode` / `base58_decode`, and `read_u64_le`.

Each program module also exposes its layout decoders. `pump_amm` has
`decode_buy_log`, `decode_sell_log`, `decode_buy_event`, `decode_sell_event`,
`decode_pool_creation_event`, `decode_withdraw_event` and
`decode_deposit_event`. `pumpfun` has `decode_swap_log`, `decode_buy_event`,
`decode_sell_event` and `decode_pool_creation_event`. `raydium` has
`decode_swap_base_in` and `decode_pool_creation_event`.

`swapdecode.types.DecodeError` (a `ValueError`) is raised for malformed
input. This covers data too short for its layout, an account index outside
the key list, a missing inner instruction or a missing token balance.

## Following a feed

`swapdecode.monitor` holds the logic for handling a live subscription:

- `build_subscribe_request(from_slot=None)` returns a `SubscribeRequest`. It
  has one transaction filter, named `client`, for the Pump AMM and Pump.fun
  programs with no vote or failed transactions. Its commitment is processed,
  and it carries the resume slot if one is given.
- `ResumeState` records the last transaction slot and the number of failed
  attempts since a session last delivered a message:
  - `on_transaction(slot)` records the slot.
  - `on_message()` resets the failure count.
  - `on_failure()` counts a failure.
  - `next_request()` resumes from the last slot while fewer than five
    failures have been counted, and subscribes without a slot after that.
- `has_balance_change(update)` reports whether any token account shows a
  different UI amount before and after the transaction.
- `process_update(parser, update)` logs the signature and slot, then decodes
  the update. It returns the base58 signature when no events were decoded but
  a token balance changed, and `None` otherwise.

## What it does not do

swapdecode does not connect to a transaction feed, does not send
subscription requests or pings, and does not retry on disconnects. It has no
command-line program. You supply the transport and the retry loop, and feed
each received update through `process_update` or `TransactionParser`.