"""
Solana Data Model

Account addresses, the transaction wire format, blocks as RPC nodes
describe them, and the JSON-RPC client that fetches them.
"""

from .accounts import AccountMeta, Pubkey, Signature
from .blocks import BlockTransaction, ConfirmedBlock, LoadedAddresses, TransactionMeta
from .rpc import RpcClient
from .transactions import (
    SolanaTransaction,
    TransactionMessage,
    MessageHeader,
    CompiledInstruction,
    MessageAddressTableLookup,
    Instruction,
    TransactionBuilder,
    sign_transaction,
    generate_keypair,
)

__all__ = [
    'AccountMeta', 'Pubkey', 'Signature',
    'BlockTransaction', 'ConfirmedBlock', 'LoadedAddresses', 'TransactionMeta',
    'RpcClient',
    'SolanaTransaction', 'TransactionMessage', 'MessageHeader',
    'CompiledInstruction', 'MessageAddressTableLookup', 'Instruction',
    'TransactionBuilder', 'sign_transaction', 'generate_keypair',
]
