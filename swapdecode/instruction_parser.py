"""Common interface of the per-program instruction decoders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import ClassVar, Optional

from .types import DecodedEvent, Platform, PlatformEvent, StructuredInstruction, TransactionUpdate


class InstructionParser(ABC):
    """Decodes the instructions that belong to one on-chain program."""

    program_id: ClassVar[str]
    platform: ClassVar[Platform]

    @abstractmethod
    def decode_instruction(
        self,
        instruction: StructuredInstruction,
        account_keys: Sequence[str],
        transaction: TransactionUpdate,
    ) -> Optional[PlatformEvent]:
        """Decode one instruction, or return None if it is not of interest."""

    def decode_instructions(
        self,
        instructions: Iterable[StructuredInstruction],
        account_keys: Sequence[str],
        transaction: TransactionUpdate,
    ) -> list[DecodedEvent]:
        """Decode every recognised instruction, tagging each event with the platform."""
        return [
            DecodedEvent(self.platform, event)
            for instruction in instructions
            if (event := self.decode_instruction(instruction, account_keys, transaction)) is not None
        ]