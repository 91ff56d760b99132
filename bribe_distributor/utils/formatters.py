"""Shared formatting and file utilities for commands."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping

from rich.console import Console
from rich.table import Table

from bribe_distributor.rewards.models import TokenRewards
from bribe_distributor.shared.types import UserClaimStatus

# Shared console instance
console = Console()


def format_address(address: str, length: int = 10) -> str:
    """
    Format an Ethereum address to show first and last characters.

    Args:
        address: Ethereum address
        length: Total visible characters (default: 10)

    Returns:
        Formatted address like "0x1234...5678"
    """
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_timestamp(
    timestamp: int, format_str: str = "%Y-%m-%d %H:%M"
) -> str:
    dt = datetime.fromtimestamp(timestamp)
    return dt.strftime(format_str)


def save_json_output(
    data: Any,
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Args:
        data: Data to save
        filename: Output filename (can include subdirectories)
        output_dir: Base output directory (default: 'output')
        print_path: Whether to print the saved file path

    Returns:
        Full path to saved file
    """
    filepath = Path(output_dir) / filename
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2, default=str)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)


def generate_timestamped_filename(prefix: str, extension: str = "json") -> str:
    """
    Generate a filename with timestamp.

    Returns:
        Filename like "prefix_20240315_123456.json"
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def create_rewards_table(rewards_by_token: Mapping[str, TokenRewards]) -> Table:
    """Rich table with one row per distributed token."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Token", width=14)
    table.add_column("Voters", width=8, justify="right")
    table.add_column("Allocated", justify="right")
    table.add_column("Dust", justify="right")

    for token, rewards in sorted(rewards_by_token.items()):
        table.add_row(
            format_address(token),
            str(len(rewards.user_rewards)),
            str(rewards.amount),
            str(rewards.dust),
        )
    return table


def create_claims_table(status: UserClaimStatus) -> Table:
    """Rich table with one row per claimable proof."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Deadline", width=16)
    table.add_column("Token", width=14)
    table.add_column("Amount", justify="right")
    table.add_column("Claimed", justify="right")
    table.add_column("Claimable", justify="right")

    for deadline, entries in sorted(status["proofs"].items()):
        for entry in entries:
            table.add_row(
                format_timestamp(deadline),
                format_address(entry["token"]),
                entry["amount"],
                entry["claimed"],
                entry["claimable"],
            )
    return table


def format_totals(totals: Dict[str, str]) -> str:
    if not totals:
        return "[dim]Nothing to claim[/dim]"
    return "\n".join(
        f"{format_address(token)}: [green]{amount}[/green]"
        for token, amount in totals.items()
    )
