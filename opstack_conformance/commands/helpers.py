"""Shared command helpers and utilities."""

import sys

from rich import print as rprint

from opstack_conformance.shared.exceptions import (
    ConfigurationException,
    DataUnavailableException,
)

EXIT_OK = 0
EXIT_NONCONFORMANT = 1
EXIT_INCONCLUSIVE = 2


def exit_code_for(error: Exception) -> int:
    # Nonconformance is only ever reported from a completed summary
    return EXIT_INCONCLUSIVE


def handle_command_error(error: Exception) -> None:
    """
    Standard error handling for commands.

    Any exception escaping a command leaves the run inconclusive.

    Args:
        error: The exception that occurred
    """
    if isinstance(error, DataUnavailableException):
        rprint(f"[yellow]Inconclusive, chain data unavailable:[/yellow] {error}")
    elif isinstance(error, (ValueError, ConfigurationException)):
        rprint(f"[red]Error:[/red] {str(error)}")
    else:
        rprint(f"[red]Unexpected error:[/red] {str(error)}")

    sys.exit(exit_code_for(error))
