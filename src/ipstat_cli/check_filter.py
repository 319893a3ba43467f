"""
CLI command for validating record filter expressions.
"""
import click

from filtering import FIELD_SPECS, FilterError, FilterSyntaxError, compile_filter


def explain_error(expression: str, error: FilterError) -> str:
    """Error message, with a caret under the failing column for syntax errors."""
    if not isinstance(error, FilterSyntaxError):
        return error.message
    return f"{error.message}\n  {expression}\n  {' ' * error.position}^"


@click.command("check-filter")
@click.argument("expression", required=False)
@click.option("--fields", is_flag=True, help="List field names and the operators they accept")
def check_filter(expression, fields):
    """
    Parse a record filter and print it in canonical form.

    Example:
      ipstat check-filter "(trans_proto == TCP) && (dest_port == 443)"
    """
    if fields:
        for spec in FIELD_SPECS.values():
            ops = " ".join(sorted(op.value for op in spec.operators))
            click.echo(f"{' / '.join(spec.aliases):40} {ops}")
        if expression is None:
            return
    if expression is None:
        raise click.UsageError("missing EXPRESSION")

    try:
        record_filter = compile_filter(expression)
    except FilterError as e:
        raise click.ClickException(explain_error(expression, e))
    click.echo(record_filter.describe())
