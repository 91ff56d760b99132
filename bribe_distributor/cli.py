#!/usr/bin/env python3
"""
Unified CLI for the Bribe Distributor.

Examples:
  - Distribute a period (defaults to the most recent deadline)
    bribe-distributor --config networks.json process --network celo [--deadline 1700006400] [--retries 3]

  - Stored commitments
    bribe-distributor merkle-trees --network celo --deadline 1700006400

  - User proofs and claimable amounts
    bribe-distributor proofs --network celo --user 0x... [--no-claims]
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from bribe_distributor.claims.service import ClaimStatusResolver
from bribe_distributor.commands.validation import (
    validate_deadline,
    validate_eth_address,
    validate_network,
)
from bribe_distributor.distribution.controller import (
    DistributionController,
    DistributionOutcome,
)
from bribe_distributor.distribution.distributor import RewardDistributor
from bribe_distributor.merkle.store import MerkleStore
from bribe_distributor.rewards.bribes_service import BribesService
from bribe_distributor.shared.config import (
    NetworkConfig,
    load_network_configs,
    validate_network_config,
)
from bribe_distributor.shared.exceptions import (
    NonRetryableException,
    RetryableException,
)
from bribe_distributor.shared.retry import RetryConfig, TRIGGER_RETRY_CONFIG
from bribe_distributor.shared.services.http_client import aclose_async_client
from bribe_distributor.shared.services.kv_store import FileKeyValueStore
from bribe_distributor.shared.services.web3_service import Web3Service
from bribe_distributor.utils.formatters import (
    console,
    create_claims_table,
    create_rewards_table,
    format_address,
    format_totals,
    generate_timestamped_filename,
    save_json_output,
)
from bribe_distributor.votes.services.subgraph_service import GaugesSubgraph
from bribe_distributor.votes.services.votes_service import VotesService

DEFAULT_STORE_DIR = os.getenv("BRIBE_STORE_DIR", "data")


def _load_config(args: argparse.Namespace) -> NetworkConfig:
    network = validate_network(args.network)
    configs = load_network_configs(args.config)
    return validate_network_config(configs, network)


def _open_store(args: argparse.Namespace) -> MerkleStore:
    return MerkleStore(FileKeyValueStore(args.store_dir))


def build_controller(
    config: NetworkConfig, store: MerkleStore
) -> DistributionController:
    """Wire the distribution services of one network."""
    web3_service = Web3Service(config.chain_id, config.rpc_url)
    subgraph = GaugesSubgraph(
        config.gauges_subgraph, max_concurrency=config.max_concurrency
    )
    return DistributionController(
        config=config,
        store=store,
        bribes_service=BribesService(config.bribe_api, config.name),
        votes_service=VotesService(subgraph),
        distributor=RewardDistributor(
            web3_service,
            config.contracts.reward_distributor,
        ),
    )


def _print_outcome(outcome: DistributionOutcome) -> None:
    console.print(
        f"[bold]{outcome.network}[/bold] deadline {outcome.deadline}: "
        f"[cyan]{outcome.state.value}[/cyan]"
    )
    if outcome.tx_hash:
        console.print(f"Proofs tx: {outcome.tx_hash}")
    if outcome.rewards_by_token:
        console.print(create_rewards_table(outcome.rewards_by_token))

    summary = outcome.summary
    if summary is not None and summary.bribes_total:
        console.print(
            f"Bribes: {summary.bribes_allocated}/{summary.bribes_total} "
            f"allocated, {summary.bribes_dropped} dropped"
        )
    if summary is not None and summary.warning_count():
        console.print(
            f"[yellow]⚠ {summary.warning_count()} warnings[/yellow]"
        )


def cmd_process(args: argparse.Namespace) -> None:
    """Run the distribution of a period."""

    async def run() -> DistributionOutcome:
        config = _load_config(args)
        deadline = validate_deadline(args.deadline)
        controller = build_controller(config, _open_store(args))

        retry = TRIGGER_RETRY_CONFIG
        if args.retries is not None:
            retry = RetryConfig(
                max_attempts=max(1, args.retries),
                base_delay=TRIGGER_RETRY_CONFIG.base_delay,
                max_delay=TRIGGER_RETRY_CONFIG.max_delay,
            )
        try:
            return await retry.run(
                controller.process,
                deadline,
                operation_name=f"process_{config.name}",
            )
        finally:
            await aclose_async_client()

    outcome = asyncio.run(run())

    if args.json:
        filename = args.output or generate_timestamped_filename(
            f"distribution_{outcome.network}_{outcome.deadline}"
        )
        save_json_output(outcome.to_dict(), filename)
        return

    _print_outcome(outcome)


def cmd_merkle_trees(args: argparse.Namespace) -> None:
    """Show the stored commitment of a period."""
    config = _load_config(args)
    deadline = validate_deadline(args.deadline)
    merkle_data = _open_store(args).require_merkle_data(deadline, config.name)

    if args.output:
        save_json_output(merkle_data, args.output)
        return

    period = merkle_data.get(str(deadline), {})
    console.print(
        f"[bold]{config.name}[/bold] deadline {deadline}: {len(period)} tokens"
    )
    for token, tree in sorted(period.items()):
        console.print(
            f"  {format_address(token)}  root {tree['root']}  "
            f"({len(tree['userRewards'])} users)"
        )


def cmd_proofs(args: argparse.Namespace) -> None:
    """Show a user's proofs and what is left to claim."""
    config = _load_config(args)
    user = validate_eth_address(args.user, "user")
    resolver = ClaimStatusResolver(
        config,
        _open_store(args),
        Web3Service(config.chain_id, config.rpc_url),
    )

    if args.no_claims:
        proofs = resolver.get_user_proofs(user)
        if args.json:
            filename = args.output or generate_timestamped_filename(
                f"proofs_{config.name}"
            )
            save_json_output(proofs, filename)
            return
        count = sum(len(entries) for entries in proofs.values())
        console.print(
            f"{format_address(user)}: {count} proofs over "
            f"{len(proofs)} deadlines"
        )
        return

    status = resolver.get_user_proofs_with_claimed(user)
    if args.json:
        filename = args.output or generate_timestamped_filename(
            f"claims_{config.name}"
        )
        save_json_output(status, filename)
        return

    console.print(f"[bold]Claimable rewards of {format_address(user)}[/bold]")
    if status["proofs"]:
        console.print(create_claims_table(status))
    console.print(format_totals(status["totals"]))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bribe-distributor",
        description="Unified CLI for the Bribe Distributor",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Networks JSON file (defaults to BRIBE_NETWORKS_FILE)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--network", type=str, required=True)
    common.add_argument(
        "--store-dir",
        type=str,
        default=DEFAULT_STORE_DIR,
        help="Directory of the commitment store",
    )
    common.add_argument("--output", type=str, help="Output filename")

    # process
    p_proc = sub.add_parser(
        "process", parents=[common], help="Distribute a period"
    )
    p_proc.add_argument("--deadline", type=int, help="Period deadline")
    p_proc.add_argument(
        "--retries", type=int, help="Attempts on transient failures"
    )
    p_proc.add_argument("--json", action="store_true", help="Output JSON")
    p_proc.set_defaults(func=cmd_process)

    # merkle-trees
    p_mt = sub.add_parser(
        "merkle-trees", parents=[common], help="Show stored merkle trees"
    )
    p_mt.add_argument("--deadline", type=int, required=True)
    p_mt.set_defaults(func=cmd_merkle_trees)

    # proofs
    p_pr = sub.add_parser(
        "proofs", parents=[common], help="User proofs and claim status"
    )
    p_pr.add_argument("--user", type=str, required=True)
    p_pr.add_argument(
        "--no-claims",
        action="store_true",
        help="Skip reading claimed amounts on-chain",
    )
    p_pr.add_argument("--json", action="store_true", help="Output JSON")
    p_pr.set_defaults(func=cmd_proofs)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except (RetryableException, NonRetryableException) as e:
        console.print(f"[red]Error ({e.category}):[/red] {e.message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise


if __name__ == "__main__":
    main()
