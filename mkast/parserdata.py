"""
Statements produced by the parser.

A parsed makefile is a forest: every statement exclusively owns its children (a Target owns its steps,
a Conditional owns its branches). Nothing is evaluated; all text is stored exactly as it was read.
"""
import enum
from io import StringIO
from typing import Iterable, List, Optional, Union


class Location(object):
    """
    A location within a makefile.
    """
    __slots__ = ('path', 'line')

    def __init__(self, path: str, line: int):
        self.path: str = path
        self.line: int = line

    def __str__(self):
        return "%s:%s" % (self.path, self.line)

    def __repr__(self):
        return "Location(%r, %r)" % (self.path, self.line)

    def __eq__(self, other):
        if not isinstance(other, Location):
            return False

        return self.path == other.path and self.line == other.line

    def __ne__(self, other):
        return not self.__eq__(other)


class Statement(object):
    """
    Represents parsed make file syntax.

    This is an abstract base class. Child classes list their fields in __slots__, which is what equality
    and repr are built from, and implement dump().
    """
    __slots__ = ()

    def dump(self, fd, indent: str) -> None:
        raise NotImplementedError("%s must implement dump()." % self.__class__)

    def __str__(self):
        fd = StringIO()
        self.dump(fd, '')
        return fd.getvalue()

    def __repr__(self):
        fields = ', '.join('%s=%r' % (name, getattr(self, name)) for name in self.__slots__)
        return "%s(%s)" % (type(self).__name__, fields)

    def __eq__(self, other):
        if type(self) is not type(other):
            return False

        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __ne__(self, other):
        return not self.__eq__(other)


class StatementList(list):
    """
    An ordered list of statements, in source order.
    """
    __slots__ = ()

    def dump(self, fd, indent: str) -> None:
        for s in self:
            s.dump(fd, indent)

    def __str__(self):
        fd = StringIO()
        self.dump(fd, '')
        return fd.getvalue()


class Comment(Statement):
    __slots__ = ('text',)

    def __init__(self, text: str):
        self.text: str = text

    def dump(self, fd, indent):
        print("%sComment %s" % (indent, self.text), file=fd)


class Include(Statement):
    """
    Represents the include directive. The included file's statements follow this one in the same list.
    """
    __slots__ = ('path',)

    def __init__(self, path: str):
        self.path: str = path

    def dump(self, fd, indent):
        print("%sInclude %s" % (indent, self.path), file=fd)


class Export(Statement):
    __slots__ = ('name', 'value')

    def __init__(self, name: str, value: str):
        self.name: str = name
        self.value: str = value

    def dump(self, fd, indent):
        print("%sExport %s=%s" % (indent, self.name, self.value), file=fd)


class Unexport(Statement):
    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name: str = name

    def dump(self, fd, indent):
        print("%sUnexport %s" % (indent, self.name), file=fd)


class GenericStep(Statement):
    """
    A shell command which is kept verbatim. A '&&' chain is not split into separate statements, but is
    shown one command per line when dumped.
    """
    __slots__ = ('command',)

    def __init__(self, command: str):
        self.command: str = command

    @property
    def commands(self) -> List[str]:
        return [c.strip() for c in self.command.split('&&')]

    def dump(self, fd, indent):
        commands = self.commands
        if len(commands) == 1:
            print("%s%s" % (indent, self.command), file=fd)
            return

        print("%s%s && \\" % (indent, commands[0]), file=fd)
        for c in commands[1:-1]:
            print("%s    %s && \\" % (indent, c), file=fd)
        print("%s    %s" % (indent, commands[-1]), file=fd)


@enum.unique
class Subcommand(enum.Enum):
    """Cargo subcommands which are recognized in recipe steps, keyed by their command-line token."""
    BUILD = 'build'
    CLEAN = 'clean'
    RUN = 'run'
    UPDATE_DEPENDENCIES = 'update'
    UNRECOGNIZED = None

    @classmethod
    def fromtoken(cls, token: Optional[str]) -> 'Subcommand':
        try:
            return cls(token)
        except ValueError:
            return cls.UNRECOGNIZED


class CargoInvocation(Statement):
    """
    A `cargo <subcommand>` recipe step.

    `directory` is the directory of the manifest passed with --manifest-path, relative to the root makefile's
    directory. None means no manifest was given, so cargo runs in the target's current directory.
    """
    __slots__ = ('subcommand', 'directory', 'command')

    def __init__(self, subcommand: Subcommand, directory: Optional[str], command: str):
        self.subcommand: Subcommand = subcommand
        self.directory: Optional[str] = directory
        self.command: str = command

    def dump(self, fd, indent):
        print("%sCargo %s %s" % (indent, self.subcommand.name, self.directory or ''), file=fd)
        print("%s    Original: %r" % (indent, self.command), file=fd)


class Target(Statement):
    __slots__ = ('name', 'deps', 'defined_in', 'steps', 'doublecolon')

    def __init__(self, name: str, deps: Iterable[str], defined_in: Optional[str],
                 steps: Iterable[Statement] = (), doublecolon: bool = False):
        self.name: str = name
        self.deps: List[str] = list(deps)
        self.defined_in: Optional[str] = defined_in
        self.steps: StatementList = StatementList(steps)
        self.doublecolon: bool = doublecolon

    def dump(self, fd, indent):
        sep = '::' if self.doublecolon else ':'
        print("%sTarget %s%s %s" % (indent, self.name, sep, ' '.join(self.deps)), file=fd)
        print("%s  Defined in: %s" % (indent, self.defined_in), file=fd)
        self.steps.dump(fd, indent + '    ')


class ElseBranch(Statement):
    __slots__ = ('steps',)

    def __init__(self, steps: Iterable[Statement] = ()):
        self.steps: StatementList = StatementList(steps)

    def dump(self, fd, indent):
        print("%sElse" % (indent,), file=fd)
        self.steps.dump(fd, indent + '  ')


class Conditional(Statement):
    """
    An ifeq/ifneq block. The condition is the raw text after the keyword and is never evaluated.

    `expected` is True for ifeq and False for ifneq. A block ends either with a chained `else ifeq ...`
    (`elseif`), with a plain `else` (`else_`), or with neither; never with both.
    """
    __slots__ = ('condition', 'expected', 'steps', 'elseif', 'else_')

    def __init__(self, condition: str, expected: bool = True, steps: Iterable[Statement] = (),
                 elseif: 'Conditional' = None, else_: ElseBranch = None):
        self.condition: str = condition
        self.expected: bool = expected
        self.steps: StatementList = StatementList(steps)
        self.elseif: Optional[Conditional] = elseif
        self.else_: Optional[ElseBranch] = else_

    @property
    def keyword(self) -> str:
        return 'ifeq' if self.expected else 'ifneq'

    def dump(self, fd, indent, prefix=''):
        print("%s%s%s %s" % (indent, prefix, 'IfEq' if self.expected else 'IfNotEq', self.condition), file=fd)
        self.steps.dump(fd, indent + '  ')

        if self.elseif is not None:
            self.elseif.dump(fd, indent, prefix='Else ')
        elif self.else_ is not None:
            self.else_.dump(fd, indent)


Node = Union[Comment, Include, Export, Unexport, Target, Conditional, GenericStep, CargoInvocation]
