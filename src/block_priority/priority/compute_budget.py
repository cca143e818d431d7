"""
Compute Budget Directives and Transaction Priority

A transaction states its fee-priority through the Compute Budget program.
Directives are Borsh-encoded: a one-byte variant tag followed by
little-endian fields. Trailing bytes after the fields are ignored.

Two variants set priority:
- RequestUnitsDeprecated(units: u32, additional_fee: u32), the legacy form,
  where priority is the fee spread over the requested units in micro-lamports
- SetComputeUnitPrice(micro_lamports: u64)

Since additional_fee is a u32, the u64 overflow check in priority_of can
never fire; it stays as a guard on the arithmetic.

Based on: https://solana.com/docs/core/fees#prioritization-fees
"""

import struct
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from ..core.accounts import COMPUTE_BUDGET_PROGRAM_ID, Pubkey
from ..errors import InstructionDecodeError, PriorityCalculationError

MICRO_LAMPORTS_PER_LAMPORT = 1_000_000
U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class RequestUnitsDeprecated:
    units: int
    additional_fee: int


@dataclass(frozen=True)
class RequestHeapFrame:
    bytes: int


@dataclass(frozen=True)
class SetComputeUnitLimit:
    units: int


@dataclass(frozen=True)
class SetComputeUnitPrice:
    micro_lamports: int


@dataclass(frozen=True)
class SetLoadedAccountsDataSizeLimit:
    bytes: int


ComputeBudgetInstruction = Union[
    RequestUnitsDeprecated,
    RequestHeapFrame,
    SetComputeUnitLimit,
    SetComputeUnitPrice,
    SetLoadedAccountsDataSizeLimit,
]

# tag -> (variant, struct layout of its fields)
VARIANTS = {
    0: (RequestUnitsDeprecated, "<II"),
    1: (RequestHeapFrame, "<I"),
    2: (SetComputeUnitLimit, "<I"),
    3: (SetComputeUnitPrice, "<Q"),
    4: (SetLoadedAccountsDataSizeLimit, "<I"),
}

PRIORITY_TAGS = (0, 3)


def decode_instruction(data: bytes) -> Optional[ComputeBudgetInstruction]:
    """
    Decode a compute budget directive.

    Returns None for an empty payload or an unknown tag. A known tag
    whose fields are cut short raises InstructionDecodeError.
    """
    if not data:
        return None
    variant = VARIANTS.get(data[0])
    if variant is None:
        return None

    cls, layout = variant
    size = struct.calcsize(layout)
    payload = data[1:1 + size]
    if len(payload) < size:
        raise InstructionDecodeError(
            f"Malformed {cls.__name__} directive: need {size} bytes, got {len(payload)}"
        )
    return cls(*struct.unpack(layout, payload))


def priority_of(instruction: ComputeBudgetInstruction) -> Optional[int]:
    """Priority a directive sets, or None if it does not set one."""
    if isinstance(instruction, SetComputeUnitPrice):
        return instruction.micro_lamports

    if isinstance(instruction, RequestUnitsDeprecated):
        if instruction.units == 0:
            raise PriorityCalculationError("Failed to calculate priority: requested zero units")
        priority = instruction.additional_fee * MICRO_LAMPORTS_PER_LAMPORT // instruction.units
        if priority > U64_MAX:
            raise PriorityCalculationError(f"Failed to calculate priority: {priority} exceeds u64")
        return priority

    return None


def resolve_priority(instructions: Iterable[Tuple[Pubkey, bytes]]) -> int:
    """
    Priority of a transaction given its (program_id, data) instructions.

    The first priority directive in instruction order wins. Without
    one the transaction has the lowest priority, 0.
    """
    for program_id, data in instructions:
        if program_id != COMPUTE_BUDGET_PROGRAM_ID:
            continue
        if not data or data[0] not in PRIORITY_TAGS:
            continue
        priority = priority_of(decode_instruction(data))
        if priority is not None:
            return priority
    return 0


# Builders for the directives, mainly for assembling transactions in tests

def set_compute_unit_price(micro_lamports: int) -> bytes:
    return bytes([3]) + struct.pack("<Q", micro_lamports)


def set_compute_unit_limit(units: int) -> bytes:
    return bytes([2]) + struct.pack("<I", units)


def request_units_deprecated(units: int, additional_fee: int) -> bytes:
    return bytes([0]) + struct.pack("<II", units, additional_fee)
