"""
ipstat CLI - main entry point.
"""
import click
from .capture import capture
from .check_filter import check_filter

@click.group()
def cli():
    """ipstat - IPv4 packet statistics with a record filter language."""
    pass

cli.add_command(capture)
cli.add_command(check_filter)

if __name__ == "__main__":
    cli()
