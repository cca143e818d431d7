"""
Solana Transaction Wire Format

This implements the binary transaction structure that RPC nodes hand back
for encoding="binary":
- A compact-u16 prefixed list of 64-byte signatures
- A message: legacy, or versioned (v0) when the first byte has its top bit set
- Message header, static account keys, recent blockhash, compiled instructions
- For v0 messages, address table lookups that load extra accounts

Every account a transaction touches is declared upfront, split into writable
and readonly, which is exactly what priority inspection needs.

Based on: https://solana.com/docs/core/transactions
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from ecdsa import SigningKey
from ecdsa.curves import Ed25519

from ..errors import SanitizeError, TransactionDecodeError
from .accounts import (
    AccountMeta,
    BPF_UPGRADEABLE_LOADER_ID,
    PUBKEY_LENGTH,
    RESERVED_ACCOUNT_KEYS,
    SIGNATURE_LENGTH,
    Pubkey,
    Signature,
)

VERSION_PREFIX_MASK = 0x80
MAX_STATIC_ACCOUNTS = 256


def encode_compact_u16(value: int) -> bytes:
    """Solana's 'shortvec' length prefix: 7 bits per byte, at most 3 bytes."""
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"compact-u16 out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


class WireReader:
    """Cursor over transaction bytes; every short read is a decode error."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read_bytes(self, length: int) -> bytes:
        if self.remaining() < length:
            raise TransactionDecodeError(
                f"Unexpected end of data at offset {self.offset}: "
                f"need {length} bytes, have {self.remaining()}"
            )
        chunk = self.data[self.offset:self.offset + length]
        self.offset += length
        return chunk

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def peek_u8(self) -> int:
        if not self.remaining():
            raise TransactionDecodeError("Unexpected end of data")
        return self.data[self.offset]

    def read_compact_u16(self) -> int:
        value = 0
        for position in range(3):
            byte = self.read_u8()
            value |= (byte & 0x7F) << (7 * position)
            if not byte & 0x80:
                if byte == 0 and position > 0:
                    raise TransactionDecodeError("Non-canonical compact-u16 encoding")
                if value > 0xFFFF:
                    raise TransactionDecodeError(f"compact-u16 overflow: {value}")
                return value
        raise TransactionDecodeError("compact-u16 longer than 3 bytes")

    def read_u8_list(self) -> List[int]:
        return list(self.read_bytes(self.read_compact_u16()))


@dataclass
class MessageHeader:
    """
    Transaction message header with account access metadata.

    This tells the runtime how many accounts need to sign and
    which accounts are read-only vs writable.
    """
    num_required_signatures: int      # Number of signatures required
    num_readonly_signed_accounts: int # Read-only accounts that must sign
    num_readonly_unsigned_accounts: int # Read-only accounts (no signature)


@dataclass
class CompiledInstruction:
    """
    Instruction compiled to reference accounts by index.

    Instead of embedding full account keys, we reference them by their
    position in the transaction's account array.
    """
    program_id_index: int           # Index into static account keys
    accounts: List[int]            # Indices into static + loaded keys
    data: bytes                    # Program-specific instruction data


@dataclass
class MessageAddressTableLookup:
    """Accounts a v0 message loads from an on-chain address lookup table."""
    account_key: Pubkey
    writable_indexes: List[int]
    readonly_indexes: List[int]


@dataclass
class TransactionMessage:
    """
    The message a transaction's signatures cover.

    version is None for legacy messages and 0 for v0 messages; only v0
    messages carry address table lookups.
    """
    header: MessageHeader
    account_keys: List[Pubkey]
    recent_blockhash: bytes
    instructions: List[CompiledInstruction]
    address_table_lookups: List[MessageAddressTableLookup] = field(default_factory=list)
    version: Optional[int] = None

    @classmethod
    def read_from(cls, reader: WireReader) -> 'TransactionMessage':
        version = None
        if reader.peek_u8() & VERSION_PREFIX_MASK:
            version = reader.read_u8() & 0x7F
            if version != 0:
                raise TransactionDecodeError(f"Unsupported transaction version {version}")

        header = MessageHeader(reader.read_u8(), reader.read_u8(), reader.read_u8())

        account_keys = [
            Pubkey(reader.read_bytes(PUBKEY_LENGTH))
            for _ in range(reader.read_compact_u16())
        ]
        recent_blockhash = reader.read_bytes(PUBKEY_LENGTH)

        instructions = []
        for _ in range(reader.read_compact_u16()):
            program_id_index = reader.read_u8()
            accounts = reader.read_u8_list()
            data = reader.read_bytes(reader.read_compact_u16())
            instructions.append(CompiledInstruction(program_id_index, accounts, data))

        lookups = []
        if version is not None:
            for _ in range(reader.read_compact_u16()):
                table = Pubkey(reader.read_bytes(PUBKEY_LENGTH))
                writable = reader.read_u8_list()
                readonly = reader.read_u8_list()
                lookups.append(MessageAddressTableLookup(table, writable, readonly))

        return cls(header, account_keys, recent_blockhash, instructions, lookups, version)

    def serialize(self) -> bytes:
        """Serialize the message exactly as it is signed and sent."""
        parts = []

        if self.version is not None:
            parts.append(bytes([VERSION_PREFIX_MASK | self.version]))

        parts.append(bytes([
            self.header.num_required_signatures,
            self.header.num_readonly_signed_accounts,
            self.header.num_readonly_unsigned_accounts,
        ]))

        parts.append(encode_compact_u16(len(self.account_keys)))
        parts.extend(bytes(key) for key in self.account_keys)

        parts.append(self.recent_blockhash)

        parts.append(encode_compact_u16(len(self.instructions)))
        for instruction in self.instructions:
            parts.append(bytes([instruction.program_id_index]))
            parts.append(encode_compact_u16(len(instruction.accounts)))
            parts.append(bytes(instruction.accounts))
            parts.append(encode_compact_u16(len(instruction.data)))
            parts.append(instruction.data)

        if self.version is not None:
            parts.append(encode_compact_u16(len(self.address_table_lookups)))
            for lookup in self.address_table_lookups:
                parts.append(bytes(lookup.account_key))
                parts.append(encode_compact_u16(len(lookup.writable_indexes)))
                parts.append(bytes(lookup.writable_indexes))
                parts.append(encode_compact_u16(len(lookup.readonly_indexes)))
                parts.append(bytes(lookup.readonly_indexes))

        return b''.join(parts)

    def num_lookup_accounts(self) -> int:
        return sum(
            len(lookup.writable_indexes) + len(lookup.readonly_indexes)
            for lookup in self.address_table_lookups
        )

    def sanitize(self) -> None:
        """
        Check the structural rules every valid message obeys.

        Raises SanitizeError on the first broken rule.
        """
        header = self.header
        num_static = len(self.account_keys)

        if header.num_required_signatures + header.num_readonly_unsigned_accounts > num_static:
            raise SanitizeError("Header requires more accounts than the message declares")
        # The fee payer must be a writable signer
        if header.num_readonly_signed_accounts >= header.num_required_signatures:
            raise SanitizeError("Message has no writable signer to pay fees")

        for lookup in self.address_table_lookups:
            if not lookup.writable_indexes and not lookup.readonly_indexes:
                raise SanitizeError(f"Address table lookup {lookup.account_key} loads no accounts")

        num_total = num_static + self.num_lookup_accounts()
        if num_total > MAX_STATIC_ACCOUNTS:
            raise SanitizeError(f"Message references {num_total} accounts, limit is {MAX_STATIC_ACCOUNTS}")

        for i, instruction in enumerate(self.instructions):
            # Programs must be static keys and can never be the fee payer
            if instruction.program_id_index == 0 or instruction.program_id_index >= num_static:
                raise SanitizeError(
                    f"Instruction {i} has invalid program id index {instruction.program_id_index}"
                )
            for account_index in instruction.accounts:
                if account_index >= num_total:
                    raise SanitizeError(
                        f"Instruction {i} references account index {account_index} out of {num_total}"
                    )

    def program_instructions(self) -> Iterator[Tuple[Pubkey, CompiledInstruction]]:
        """Yield (program_id, instruction) pairs in instruction order."""
        for instruction in self.instructions:
            yield self.account_keys[instruction.program_id_index], instruction

    def is_invoked_program(self, index: int) -> bool:
        return any(ix.program_id_index == index for ix in self.instructions)

    def is_writable_index(self, index: int) -> bool:
        """Writability of a static key according to the header layout alone."""
        header = self.header
        num_writable_signed = header.num_required_signatures - header.num_readonly_signed_accounts
        if index < header.num_required_signatures:
            return index < num_writable_signed
        return index < len(self.account_keys) - header.num_readonly_unsigned_accounts

    def is_upgradeable_loader_present(self, loaded_keys: Sequence[Pubkey] = ()) -> bool:
        return BPF_UPGRADEABLE_LOADER_ID in self.account_keys or BPF_UPGRADEABLE_LOADER_ID in loaded_keys

    def is_writable(self, index: int, loaded_keys: Sequence[Pubkey] = ()) -> bool:
        """
        Whether a static key is write-locked.

        Sysvars and builtin programs are always demoted to readonly. Invoked
        programs are demoted unless the upgradeable loader is present, among
        the static keys or the accounts loaded from lookup tables.
        """
        if not self.is_writable_index(index):
            return False
        if self.account_keys[index] in RESERVED_ACCOUNT_KEYS:
            return False
        if self.is_invoked_program(index):
            return self.is_upgradeable_loader_present(loaded_keys)
        return True

    def resolve_accounts(self, loaded_writable: Sequence[Pubkey] = (),
                         loaded_readonly: Sequence[Pubkey] = ()) -> Tuple[List[Pubkey], List[Pubkey]]:
        """
        Split every account the transaction touches into (writable, readonly).

        Static keys come first in key order, then loaded addresses.
        """
        loaded_keys = list(loaded_writable) + list(loaded_readonly)
        writable, readonly = [], []
        for i, key in enumerate(self.account_keys):
            (writable if self.is_writable(i, loaded_keys) else readonly).append(key)
        for key in loaded_writable:
            (readonly if key in RESERVED_ACCOUNT_KEYS else writable).append(key)
        readonly.extend(loaded_readonly)
        return writable, readonly

    def get_writable_accounts(self) -> List[Pubkey]:
        """Static accounts this message can modify, in key order."""
        return self.resolve_accounts()[0]

    def get_readonly_accounts(self) -> List[Pubkey]:
        """Static accounts this message only reads, in key order."""
        return self.resolve_accounts()[1]


@dataclass
class SolanaTransaction:
    """
    Complete Solana transaction with signatures and message.

    This is the structure included in blocks; the first signature is the
    transaction's identifier.
    """
    signatures: List[Signature]
    message: TransactionMessage

    @classmethod
    def from_bytes(cls, data: bytes) -> 'SolanaTransaction':
        """Decode a wire-format transaction, rejecting trailing bytes."""
        reader = WireReader(data)
        signatures = [
            Signature(reader.read_bytes(SIGNATURE_LENGTH))
            for _ in range(reader.read_compact_u16())
        ]
        message = TransactionMessage.read_from(reader)
        if reader.remaining():
            raise TransactionDecodeError(f"{reader.remaining()} trailing bytes after transaction")
        return cls(signatures, message)

    def serialize(self) -> bytes:
        parts = [encode_compact_u16(len(self.signatures))]
        parts.extend(bytes(signature) for signature in self.signatures)
        parts.append(self.message.serialize())
        return b''.join(parts)

    @property
    def signature(self) -> Signature:
        if not self.signatures:
            raise SanitizeError("Transaction has no signatures")
        return self.signatures[0]

    def sanitize(self) -> None:
        """Check signature count against the header, then the message."""
        required = self.message.header.num_required_signatures
        if len(self.signatures) < required:
            raise SanitizeError(f"Not enough signers: {len(self.signatures)} < {required}")
        if len(self.signatures) > required:
            raise SanitizeError(f"Too many signatures: {len(self.signatures)} > {required}")
        if required > len(self.message.account_keys):
            raise SanitizeError("Signer index out of bounds")
        self.message.sanitize()


@dataclass
class Instruction:
    """
    High-level instruction before compilation to indices.

    This is the developer-friendly format for building transactions.
    It gets compiled down to CompiledInstruction.
    """
    program_id: Pubkey
    accounts: List[AccountMeta]
    data: bytes


class TransactionBuilder:
    """
    Builder for constructing Solana transactions.

    This handles ordering accounts the way the runtime expects and
    compiling instructions to their binary format.
    """

    def __init__(self, fee_payer: Pubkey, recent_blockhash: bytes = bytes(32)):
        """
        Initialize transaction builder.

        Args:
            fee_payer: Account that pays transaction fees (must be signer)
            recent_blockhash: Recent blockhash for replay protection
        """
        self.fee_payer = fee_payer
        self.recent_blockhash = recent_blockhash
        self.instructions: List[Instruction] = []
        self.address_table_lookups: List[MessageAddressTableLookup] = []

    def add_instruction(self, instruction: Instruction) -> 'TransactionBuilder':
        """Add an instruction to the transaction (fluent interface)."""
        self.instructions.append(instruction)
        return self

    def add_lookup(self, table: Pubkey, writable_indexes: Sequence[int] = (),
                   readonly_indexes: Sequence[int] = ()) -> 'TransactionBuilder':
        """Load accounts from a lookup table; turns the message into v0."""
        self.address_table_lookups.append(
            MessageAddressTableLookup(table, list(writable_indexes), list(readonly_indexes))
        )
        return self

    def build(self, version: Optional[int] = None) -> TransactionMessage:
        """
        Build the final transaction message.

        Accounts are ordered:
        1. Writable signers (fee payer first)
        2. Readonly signers
        3. Writable non-signers
        4. Readonly non-signers (programs land here)
        Within each group, first appearance wins.
        """
        signers = {self.fee_payer}
        writable = {self.fee_payer}
        seen = [self.fee_payer]

        for instruction in self.instructions:
            for account in instruction.accounts:
                if account.pubkey not in seen:
                    seen.append(account.pubkey)
                if account.is_signer:
                    signers.add(account.pubkey)
                if account.is_writable:
                    writable.add(account.pubkey)
            if instruction.program_id not in seen:
                seen.append(instruction.program_id)

        writable_signers = [key for key in seen if key in signers and key in writable]
        readonly_signers = [key for key in seen if key in signers and key not in writable]
        writable_non_signers = [key for key in seen if key not in signers and key in writable]
        readonly_non_signers = [key for key in seen if key not in signers and key not in writable]

        account_keys = writable_signers + readonly_signers + writable_non_signers + readonly_non_signers
        account_index = {key: i for i, key in enumerate(account_keys)}

        compiled_instructions = [
            CompiledInstruction(
                program_id_index=account_index[instruction.program_id],
                accounts=[account_index[meta.pubkey] for meta in instruction.accounts],
                data=instruction.data,
            )
            for instruction in self.instructions
        ]

        header = MessageHeader(
            num_required_signatures=len(writable_signers) + len(readonly_signers),
            num_readonly_signed_accounts=len(readonly_signers),
            num_readonly_unsigned_accounts=len(readonly_non_signers),
        )

        if self.address_table_lookups and version is None:
            version = 0

        return TransactionMessage(
            header=header,
            account_keys=account_keys,
            recent_blockhash=self.recent_blockhash,
            instructions=compiled_instructions,
            address_table_lookups=list(self.address_table_lookups),
            version=version,
        )


def sign_transaction(message: TransactionMessage, signers: Sequence[SigningKey]) -> SolanaTransaction:
    """
    Sign a transaction message with the provided Ed25519 keys.

    Args:
        message: Transaction message to sign
        signers: Private keys in the same order as the required signers

    Returns:
        Fully signed transaction
    """
    message_data = message.serialize()
    signatures = [Signature(signer.sign(message_data)) for signer in signers]
    return SolanaTransaction(signatures=signatures, message=message)


def generate_keypair(seed: Optional[bytes] = None) -> Tuple[SigningKey, Pubkey]:
    """
    Generate an Ed25519 keypair; a 32-byte seed makes it deterministic.

    Returns:
        Tuple of (private_key, public_key)
    """
    if seed is None:
        private_key = SigningKey.generate(curve=Ed25519)
    else:
        private_key = SigningKey.from_string(seed, curve=Ed25519)
    return private_key, Pubkey(private_key.verifying_key.to_string())
