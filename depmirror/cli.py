#!/usr/bin/env python3

import logging

import click

from depmirror.commands.add import add_handler
from depmirror.commands.mirror import mirror_handler
from depmirror.commands.update import update_handler
from depmirror.config import logger


@click.group()
@click.version_option(package_name='depmirror')
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file (default: medusa.json or $DEPMIRROR_CONFIG)')
@click.option('-v', '--verbose', is_flag=True, help='Log worker activity')
@click.pass_context
def cli(ctx, config_path, verbose):
    """depmirror - Local git mirror of your project's package dependencies.

    Resolves every package your root packages ever required, mirrors each
    repository with git and publishes the mirrors to a Satis configuration,
    so builds no longer depend on third-party package hosts.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    if verbose:
        logger.setLevel(logging.DEBUG)


cli.add_command(add_handler)
cli.add_command(mirror_handler)
cli.add_command(update_handler)


def main():
    cli()

if __name__ == "__main__":
    main()
