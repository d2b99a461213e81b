"""
Function Table
==============

Maps every VM function name to the source unit that defines it.

The table is filled during the first pass of a multi-unit translation
and frozen before the second pass starts, so code generation and the
call checker only ever see a read-only view.

Usage
-----
>>> table = FunctionTable()
>>> table.add("Main.main", "Main")
>>> table.add("Sys.init", "Sys")
>>> table.freeze()
>>> table.lookup("Sys.init")
'Sys'
>>> "Math.multiply" in table
False
"""

import logging
from typing import Iterator, Optional

from hackvm.errors import LinkError


logger = logging.getLogger(__name__)


class FunctionTable:
    """
    Function name -> defining unit name.

    ``add`` performs no validation: adding a name twice overwrites the
    earlier entry. Callers that care about duplicates (the translation
    driver does) check ``contains`` first.
    """

    def __init__(self) -> None:
        self._table: dict[str, str] = {}
        self._frozen = False

    def add(self, name: str, unit: str) -> None:
        """
        Record that ``unit`` defines function ``name``.

        Raises:
            LinkError: If the table has been frozen
        """
        if self._frozen:
            raise LinkError(f"function table is frozen; cannot add '{name}'")
        self._table[name] = unit
        logger.debug(f"Function table: {name} -> {unit}")

    def contains(self, name: str) -> bool:
        return name in self._table

    def lookup(self, name: str) -> Optional[str]:
        """Return the unit defining ``name``, or None if unknown."""
        return self._table.get(name)

    def freeze(self) -> "FunctionTable":
        """Make the table read-only. Returns self for chaining."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def functions_in(self, unit: str) -> list[str]:
        """Names of the functions a unit defines, in insertion order."""
        return [name for name, owner in self._table.items() if owner == unit]

    def dump(self) -> str:
        """
        Human-readable listing sorted by unit name, then function name.

        Example:
            Main.main = Main
            Sys.init = Sys
        """
        entries = sorted(self._table.items(), key=lambda item: (item[1], item[0]))
        return "\n".join(f"{name} = {unit}" for name, unit in entries)

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"FunctionTable({len(self._table)} functions, {state})"
