"""Progress indicator utilities."""

import sys

from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


def create_spinner():
    """Create an indeterminate spinner for work with no known length."""
    columns = [
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TimeElapsedColumn(),
    ]
    return Progress(*columns, console=None, transient=True, disable=not sys.stderr.isatty())
