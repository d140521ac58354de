"""Allow ``python -m stagely`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m stagely`` behaves identically to the ``stagely``
console script.
"""

from __future__ import annotations

from stagely.cli.app import cli

if __name__ == "__main__":
    cli()
