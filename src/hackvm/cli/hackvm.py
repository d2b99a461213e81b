"""
hackvm - VM Translator Command-Line Interface
=============================================

This module implements the command-line interface for the VM translator.
It translates a single .vm file, or every .vm file in a directory, into
one Hack assembly file.

Usage Examples
--------------
Single file (no bootstrap):
    $ hackvm SimpleAdd.vm                 # writes SimpleAdd.asm

Directory (bootstrap + all units):
    $ hackvm FibonacciElement/            # writes FibonacciElement/FibonacciElement.asm

Explicit output and options:
    $ hackvm Prog/ -o build/Prog.asm --no-comments --strict

Show the function table built by the first pass:
    $ hackvm -v --dump-functions StaticsTest/
"""

import logging
from pathlib import Path
from typing import Optional

import click

from hackvm import __version__
from hackvm.cli.errors import handle_cli_exception
from hackvm.vm.translator import TranslatorOptions, VMTranslator


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_path",
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output .asm file (default: Prog.asm, or DIR/DIR.asm for a directory)",
)
@click.option(
    "--bootstrap/--no-bootstrap",
    default=None,
    help="Force the bootstrap code on or off. "
         "Default: on for directories with several units, off otherwise.",
)
@click.option(
    "--comments/--no-comments",
    default=None,
    help="Emit a comment before each translated command. Default: on.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Treat calls to undefined functions as errors",
)
@click.option(
    "--dump-functions",
    is_flag=True,
    help="Print the function table built by the first pass",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="hackvm")
def main(
    input_path: Path,
    output: Optional[Path],
    bootstrap: Optional[bool],
    comments: Optional[bool],
    strict: bool,
    dump_functions: bool,
    verbose: bool,
) -> None:
    """
    Translate Hack VM code into Hack assembly.

    INPUT_PATH is a .vm file or a directory of .vm files. All units are
    written to one .asm file; static variables are qualified by unit
    name.

    \b
    Examples:
        hackvm SimpleAdd.vm           # Outputs SimpleAdd.asm
        hackvm StaticsTest/           # Outputs StaticsTest/StaticsTest.asm
        hackvm Prog.vm -o out.asm     # Specify output file
    """
    setup_logging(verbose)

    options = TranslatorOptions.from_env()
    if bootstrap is not None:
        options.bootstrap = bootstrap
    if comments is not None:
        options.emit_comments = comments
    if strict:
        options.strict_calls = True
    logger.debug(f"Translator options: {options}")

    try:
        translator = VMTranslator(options)
        result = translator.translate_path(input_path, output)

        if dump_functions:
            table = result.function_table.dump()
            click.echo(table if table else "(no functions)")

        if verbose:
            click.echo(f"Units: {', '.join(result.units)}")
            click.echo(f"Bootstrap: {'yes' if result.bootstrap_emitted else 'no'}")
            click.echo(f"Commands translated: {result.command_count}")
            if result.warnings:
                click.echo(f"Warnings: {len(result.warnings)}")

        click.echo(f"Wrote {result.output_path}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Translation")


if __name__ == "__main__":
    main()
