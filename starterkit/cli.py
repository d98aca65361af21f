#!/usr/bin/env python3

import click

from starterkit.config import load_config, setup_logging
from starterkit.commands.starters import list_handler, new_handler, apply_handler
from starterkit.commands.config import config_cmd


@click.group()
@click.version_option(package_name="starterkit")
@click.option('-v', '--verbose', is_flag=True, help='Show debug logging')
def cli(verbose):
    """Project starter generator."""
    logging_config = load_config()['logging']
    setup_logging(
        level="DEBUG" if verbose else logging_config['level'],
        fmt=logging_config['format'],
    )


cli.add_command(list_handler)
cli.add_command(new_handler)
cli.add_command(apply_handler)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
