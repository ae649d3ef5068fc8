"""Assemble static documentation sites from extracted documentation records.

This package exposes the CLI entry points used by the ``ngdocs`` console
script to build one documentation section at a time into a shared site, and
to collapse a generated site into a single page.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from ngdocs_site import main
>>> main()  # doctest: +SKIP
>>> from ngdocs_site import app
>>> app(["build", "--target", "api"])  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
