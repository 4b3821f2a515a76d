"""Routes a transaction's instructions to the decoders of the programs it touches."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Optional

from .instruction_parser import InstructionParser
from .pump_amm import PumpAmmInstructionParser
from .pumpfun import PumpFunInstructionParser
from .types import DecodedEvent, StructuredInstruction, TransactionUpdate
from .utils import filter_instructions, get_account_keys, structure_all_instructions


class TransactionParser:
    """Decodes every instruction of a transaction that a registered parser understands."""

    def __init__(self, parsers: Optional[Iterable[InstructionParser]] = None) -> None:
        if parsers is None:
            parsers = [PumpAmmInstructionParser(), PumpFunInstructionParser()]
        self.parsers: dict[str, InstructionParser] = {p.program_id: p for p in parsers}

    @property
    def program_ids(self) -> frozenset[str]:
        return frozenset(self.parsers)

    def get_parsers_and_instructions(
        self, update: TransactionUpdate, account_keys: Sequence[str]
    ) -> dict[str, list[StructuredInstruction]]:
        """Instructions of the registered programs, grouped by program id."""
        roots = structure_all_instructions(update)
        return filter_instructions(roots, account_keys, self.program_ids)

    def decode_transaction(self, update: TransactionUpdate) -> list[DecodedEvent]:
        """All events decoded from the transaction."""
        account_keys = get_account_keys(update)
        grouped = self.get_parsers_and_instructions(update, account_keys)
        events: list[DecodedEvent] = []
        for program_id, instructions in grouped.items():
            parser = self.parsers.get(program_id)
            if parser is not None:
                events.extend(parser.decode_instructions(instructions, account_keys, update))
        return events