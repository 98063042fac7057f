"""Logging setup for the CLI.

Modules log through ``logging.getLogger(__name__)``; this module only
decides the level and routes records to the shared stderr console.
"""

import logging

from rich.logging import RichHandler


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging level based on CLI flags.

    Precedence:
    - quiet -> ERROR
    - verbose -> INFO
    - default -> WARNING
    """
    from devstrap.utils.formatting import err_console

    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
