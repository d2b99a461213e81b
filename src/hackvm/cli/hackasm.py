"""
hackasm - Hack Assembler Command-Line Interface
===============================================

Assembles Hack assembly (such as hackvm's output) into the .hack text
format: one 16-character binary word per line.

Usage Examples
--------------
    $ hackasm Prog.asm                # writes Prog.hack
    $ hackasm Prog.asm -o out.hack
    $ hackasm -v Prog.asm             # also prints instruction and symbol counts
"""

from pathlib import Path
from typing import Optional

import click

from hackvm import __version__
from hackvm.assembler import PREDEFINED_SYMBOLS, Assembler
from hackvm.cli.errors import handle_cli_exception
from hackvm.cli.hackvm import setup_logging


HACK_EXTENSION = ".hack"


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output .hack file (default: input.hack)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="hackasm")
def main(input_file: Path, output: Optional[Path], verbose: bool) -> None:
    """
    Assemble Hack assembly into Hack machine code.

    INPUT_FILE is the assembly source file (.asm) to assemble.
    """
    setup_logging(verbose)
    output_file = output if output is not None else input_file.with_suffix(HACK_EXTENSION)

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        asm = Assembler()
        code = asm.assemble_file(input_file)
        asm.write_hack(output_file)

        if verbose:
            user_symbols = len(asm.symbols) - len(PREDEFINED_SYMBOLS)
            click.echo(f"Assembly complete: {len(code)} instructions")
            click.echo(f"Defined {user_symbols} symbols")

        click.echo(f"Wrote {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
