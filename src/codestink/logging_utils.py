from __future__ import annotations

import logging
import sys


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    """
    Configure process-wide logging for CLI usage.

    INFO by default, DEBUG with --verbose, WARNING with --quiet. Records go to
    stderr so JSON on stdout stays machine-readable.
    """

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    fmt = "CodeStink: %(message)s"
    if verbose:
        fmt = "CodeStink [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)
