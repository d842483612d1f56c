"""CLI entry point for `nurserydb`."""

from __future__ import annotations

import logging

import click

from nurserydb.cli.connect import connect
from nurserydb.cli.db import db
from nurserydb.cli.token import token


@click.group()
@click.version_option(package_name="nurserydb")
@click.option("-v", "--verbose", is_flag=True, help="Log executed SQL to stderr.")
def main(verbose: bool) -> None:
    """nurserydb: role-checked access to the nursery database."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


main.add_command(token)
main.add_command(connect)
main.add_command(db)
