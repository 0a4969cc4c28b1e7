"""
The variable context and the parse result.
"""
import enum
import logging
from io import StringIO
from typing import Dict, Iterator, Optional, Set, Tuple

from . import parserdata

_log = logging.getLogger('mkast.data')


class Context:
    """
    A mapping from variable names to raw (never expanded) values, plus the flavor each name was assigned with.

    The flavor sets only ever grow: re-assigning a `?=` variable with a plain `=` keeps it marked as
    conditional, and unset() keeps the flavor record too.
    """

    __slots__ = ('root_dir', '_map', 'modifiable', 'simple_expanded')

    @enum.unique
    class Flavor(enum.Enum):
        RECURSIVE = ' '
        SIMPLE = ':'
        CONDITIONAL = '?'

        @property
        def marker(self) -> str:
            return self.value

    def __init__(self, root_dir: str):
        self.root_dir: str = root_dir
        """Directory of the root makefile; base of cargo manifest path resolution."""
        self._map: Dict[str, str] = {}
        self.modifiable: Set[str] = set()
        """Names assigned with ?="""
        self.simple_expanded: Set[str] = set()
        """Names assigned with := or ::="""

    def get(self, name: str) -> Optional[str]:
        return self._map.get(name)

    def set(self, name: str, value: str) -> str:
        """
        Set a variable. `name` may still carry the assignment modifier, i.e. everything left of the '=':

        * `NAME?` marks the variable as conditional,
        * `NAME:` or `NAME::` marks it as simply expanded,
        * `NAME+` appends `value` to the existing value, separated by a space.

        The value is always stored, even for `?=`.

        :return: Name of the variable with the modifier removed.
        """
        name = name.strip()

        if name.endswith('?'):
            name = name[:-1].rstrip()
            self.modifiable.add(name)

        # https://www.gnu.org/software/make/manual/html_node/Flavors.html
        if name.endswith(':'):
            name = name.rstrip(':').rstrip()
            self.simple_expanded.add(name)

        if name.endswith('+'):
            name = name[:-1].rstrip()
            old_value = self._map.get(name)
            if old_value is not None:
                value = old_value + ' ' + value

        _log.debug("Setting variable '%s' to '%s'", name, value)
        self._map[name] = value
        return name

    def unset(self, name: str) -> None:
        """
        Remove a variable. Does nothing if it is not set.
        """
        self._map.pop(name, None)

    def flavor(self, name: str) -> Flavor:
        if name in self.modifiable:
            return self.Flavor.CONDITIONAL
        if name in self.simple_expanded:
            return self.Flavor.SIMPLE
        return self.Flavor.RECURSIVE

    def __iter__(self) -> Iterator[Tuple[str, Flavor, str]]:
        for name in sorted(self._map):
            yield name, self.flavor(name), self._map[name]

    def __contains__(self, name: str) -> bool:
        return name in self._map

    def __len__(self) -> int:
        return len(self._map)

    def dump(self, fd, indent: str) -> None:
        print("%sContext:" % (indent,), file=fd)
        for name, flavor, value in self:
            print("%s\t%s\t%s: %s" % (indent, name, flavor.marker, value), file=fd)

    def __str__(self) -> str:
        vars_ = ["%s<%s>=%s" % (name, flavor.name, value) for name, flavor, value in self]
        return f"{type(self).__name__}({', '.join(vars_)})"


class Makefile(object):
    """
    The result of parsing a makefile: top-level statements in source order (statements of included files
    follow their Include statement), and the variable context as it was at the end of the input.
    """

    def __init__(self, path: str, context: Context):
        self.path: str = path
        self.context: Context = context
        self.statements: parserdata.StatementList = parserdata.StatementList()

    def dump(self, fd) -> None:
        print("AST:", file=fd)
        self.context.dump(fd, '\t')
        print("\tNodes:", file=fd)
        self.statements.dump(fd, '\t\t')

    def __str__(self):
        fd = StringIO()
        self.dump(fd)
        return fd.getvalue()
