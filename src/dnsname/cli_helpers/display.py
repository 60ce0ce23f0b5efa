#!/usr/bin/env python3
"""
Display helper functions for the dnsname CLI
"""

from typing import List

from rich.console import Console
from rich.table import Table

from ..hosts import HostRecord

console = Console()


def display_records(records: List[HostRecord], interface: str) -> None:
    """Pretty-print a table with address → name/alias mapping."""
    table = Table(title=f"Hosts on {interface}", header_style="bold magenta")
    table.add_column("Address", style="green", no_wrap=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Aliases", style="yellow")

    for record in records:
        table.add_row(record.address, record.primary_name, ", ".join(record.aliases) or "-")

    console.print(table)


def display_success(message: str):
    """Display success message"""
    console.print(f"[green]✅ {message}[/green]")


def display_warning(message: str):
    """Display warning message"""
    console.print(f"[yellow]⚠️  {message}[/yellow]")


def display_error(message: str):
    """Display error message"""
    console.print(f"[red]❌ {message}[/red]")


def display_info(message: str):
    """Display info message"""
    console.print(f"[blue]ℹ️  {message}[/blue]")
