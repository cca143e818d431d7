"""
Solana Account Addresses

Accounts on Solana are identified by 32-byte Ed25519 public keys, written
out in base58. For priority inspection an account carries no state of its
own: all we need is a value that hashes, compares, and prints the way
explorers print it.

Based on: https://solana.com/docs/core/accounts
"""

from dataclasses import dataclass

import base58

from ..errors import PubkeyParseError

PUBKEY_LENGTH = 32
SIGNATURE_LENGTH = 64


@dataclass(frozen=True, order=True)
class Pubkey:
    """
    A 32-byte account address.

    Frozen so it can key the per-account access map directly.
    """
    raw: bytes

    def __post_init__(self):
        # ecdsa hands back bytearray; keep the key hashable
        object.__setattr__(self, "raw", bytes(self.raw))
        if len(self.raw) != PUBKEY_LENGTH:
            raise PubkeyParseError(
                f"Public key must be {PUBKEY_LENGTH} bytes, got {len(self.raw)}"
            )

    @classmethod
    def from_string(cls, text: str) -> 'Pubkey':
        """Parse a base58 address, the form RPC nodes return."""
        if not isinstance(text, str):
            raise PubkeyParseError(f"Failed to parse pubkey {text!r}: not a string")
        try:
            raw = base58.b58decode(text)
        except ValueError as e:
            raise PubkeyParseError(f"Failed to parse pubkey {text}: {e}")
        if len(raw) != PUBKEY_LENGTH:
            raise PubkeyParseError(
                f"Failed to parse pubkey {text}: decoded to {len(raw)} bytes"
            )
        return cls(raw)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return base58.b58encode(self.raw).decode()

    def __repr__(self) -> str:
        return f"Pubkey({self})"


@dataclass(frozen=True)
class Signature:
    """A 64-byte transaction signature; the first one names the transaction."""
    raw: bytes

    def __post_init__(self):
        object.__setattr__(self, "raw", bytes(self.raw))
        if len(self.raw) != SIGNATURE_LENGTH:
            raise ValueError(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(self.raw)}"
            )

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return base58.b58encode(self.raw).decode()

    def __repr__(self) -> str:
        return f"Signature({self})"


@dataclass
class AccountMeta:
    """
    Account metadata for instruction building.

    This tells the runtime how an instruction wants to access each account.
    Declaring access patterns upfront is what lets the inspector know which
    accounts a transaction writes and which it only reads.
    """
    pubkey: Pubkey
    is_signer: bool
    is_writable: bool


# Well-known program addresses
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
COMPUTE_BUDGET_PROGRAM_ID = Pubkey.from_string("ComputeBudget111111111111111111111111111111")
BPF_UPGRADEABLE_LOADER_ID = Pubkey.from_string("BPFLoaderUpgradeab1e11111111111111111111111")

# Sysvars and builtin programs. The runtime never write-locks these, even
# when a message header marks them writable.
SYSVAR_IDS = frozenset(Pubkey.from_string(address) for address in (
    "Sysvar1111111111111111111111111111111111111",
    "SysvarC1ock11111111111111111111111111111111",
    "SysvarEpochRewards1111111111111111111111111",
    "SysvarEpochSchedu1e111111111111111111111111",
    "SysvarFees111111111111111111111111111111111",
    "Sysvar1nstructions1111111111111111111111111",
    "SysvarLastRestartS1ot1111111111111111111111",
    "SysvarRecentB1ockHashes11111111111111111111",
    "SysvarRent111111111111111111111111111111111",
    "SysvarRewards111111111111111111111111111111",
    "SysvarS1otHashes111111111111111111111111111",
    "SysvarS1otHistory11111111111111111111111111",
    "SysvarStakeHistory1111111111111111111111111",
))

BUILTIN_PROGRAM_IDS = frozenset(Pubkey.from_string(address) for address in (
    "AddressLookupTab1e1111111111111111111111111",
    "BPFLoader1111111111111111111111111111111111",
    "BPFLoader2111111111111111111111111111111111",
    "Config1111111111111111111111111111111111111",
    "Ed25519SigVerify111111111111111111111111111",
    "Feature111111111111111111111111111111111111",
    "KeccakSecp256k11111111111111111111111111111",
    "LoaderV411111111111111111111111111111111111",
    "NativeLoader1111111111111111111111111111111",
    "Stake11111111111111111111111111111111111111",
    "Vote111111111111111111111111111111111111111",
)) | {SYSTEM_PROGRAM_ID, COMPUTE_BUDGET_PROGRAM_ID, BPF_UPGRADEABLE_LOADER_ID}

RESERVED_ACCOUNT_KEYS = SYSVAR_IDS | BUILTIN_PROGRAM_IDS
