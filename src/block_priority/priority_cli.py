#!/usr/bin/env python3
"""
Block Priority CLI

Fetches one block from a Solana RPC node and reports priority violations:
accounts a higher-priority transaction reached only after a conflicting
lower-priority transaction.

Usage:
    block-priority <slot>              # Full report
    block-priority <slot> -c           # Number of violations only
    block-priority <slot> -u <url>     # Use another RPC endpoint
    block-priority <slot> -v           # Progress messages on stderr

Exit status is 1 when the block cannot be fetched or understood, 0 otherwise
(finding violations is a normal result).
"""

import argparse
import sys
from typing import Optional, Sequence

from .config import InspectorConfig
from .core.rpc import RpcClient
from .errors import PriorityCheckError
from .priority.inspector import BlockInspector


def non_negative_slot(value: str) -> int:
    try:
        slot = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid slot: {value!r}")
    if slot < 0:
        raise argparse.ArgumentTypeError(f"slot must be non-negative: {value!r}")
    return slot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="block-priority",
        description="Check a Solana block for fee-priority ordering violations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  block-priority 250000000          # Report violations in slot 250000000
  block-priority 250000000 -c       # Print only the violation count
  SOLANA_RPC_URL=http://localhost:8899 block-priority 1234
        """
    )
    parser.add_argument('slot', type=non_negative_slot,
                        help='Slot to fetch block and perform priority checks for')
    parser.add_argument('-c', '--display-count-only', action='store_true', default=False,
                        help='Display number of violations only')
    parser.add_argument('-u', '--url', default=None,
                        help='RPC endpoint (default: $SOLANA_RPC_URL or mainnet-beta)')
    parser.add_argument('-v', '--verbose', action='store_true', default=False,
                        help='Print progress to stderr')
    return parser


def run(slot: int, display_count_only: bool = False,
        config: Optional[InspectorConfig] = None, verbose: bool = False,
        client: Optional[RpcClient] = None) -> str:
    """Fetch, inspect and render; raises PriorityCheckError on any failure."""
    config = config or InspectorConfig.from_env()

    if verbose:
        print(f"📡 Fetching block at slot {slot} from {config.rpc_url}", file=sys.stderr)

    if client is None:
        with RpcClient(config) as rpc:
            block = rpc.get_block(slot)
    else:
        block = client.get_block(slot)

    report = BlockInspector(verbose=verbose).inspect(block)
    return report.render(count_only=display_count_only)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = InspectorConfig.from_env().with_url(args.url)
        output = run(args.slot, args.display_count_only, config, args.verbose)
    except PriorityCheckError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n👋 Interrupted", file=sys.stderr)
        sys.exit(1)

    print(output)
    return 0


if __name__ == '__main__':
    main()
