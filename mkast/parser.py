"""
Module for parsing Makefile syntax into the statements defined in the parserdata module.

Parsing is line based. Every logical line coming out of the LineStream is handed to parse_statement(), which
decides which construct the line starts:

* comments, include and export/unexport directives become a single statement,
* variable assignments only update the Context and produce no statement,
* a rule header starts a Target, which takes all following tab-indented lines as its steps,
* ifeq/ifneq starts a Conditional, which takes all lines up to its endif, classifying each of them with
  parse_statement() again.

Nothing is expanded: values, conditions and commands are kept as the raw text of the makefile. Steps of a
target which invoke cargo are recognized, and the directory of their manifest is resolved by following the
`cd` steps before them.
"""
import logging
import os
import re
from typing import List, Optional

from . import data, errors, parserdata, util
from .parserdata import Location
from .stream import LineStream, is_include

_log = logging.getLogger('mkast.parser')

_conditionkeywords = ('ifeq', 'ifneq')

_directivestokenlist = _conditionkeywords + ('else', 'endif', 'export', 'unexport')

_directivesre = re.compile(r'(%s)(?:$|\s+)' % '|'.join(_directivestokenlist))

# NAME followed by an optional ?, :, :: or + modifier and =
_varsetre = re.compile(r'[\w.\-]+\s*(?:\?|::?|\+)?=')

# colon which is not part of an assignment token
_targetre = re.compile(r'[^:]*:(?!=)')

_cargo_command = 'cargo'
_manifest_flag = '--manifest-path'


def _directive(line: str) -> Optional[re.Match]:
    return _directivesre.match(line)


def parse_statement(line: str, stream: LineStream, context: data.Context) -> Optional[parserdata.Node]:
    """
    Parse the logical line just read from `stream`, reading further lines from it if the line starts a
    multi-line construct.

    Lines nothing else matches become a GenericStep with a warning, except a stray else or endif: those are a
    broken conditional structure and raise MakeSyntaxError instead.

    :return: The parsed statement, or None if the line was a variable assignment.
    """
    line = line.strip()

    if line.startswith('#'):
        return parserdata.Comment(line[1:].strip())

    m = _directive(line)
    kword = m.group(1) if m is not None else None

    # export must be checked before assignments, `export NAME=VALUE` looks like one.
    if kword in ('export', 'unexport'):
        return parse_export(line, context, stream.loc)

    if _varsetre.match(line) is not None:
        name, t, value = line.partition('=')
        context.set(name, value.strip())
        return None

    if is_include(line):
        return parse_include(line, stream)

    # Conditions may contain colons, so check them before rules.
    if kword in _conditionkeywords:
        return parse_conditional(line, stream, context)

    if kword in ('else', 'endif'):
        raise errors.MakeSyntaxError("unmatched '%s' directive" % (kword,), stream.loc)

    if _targetre.match(line) is not None:
        return parse_target(line, stream, context)

    _log.warning("%s: Unhandled: %s", stream.loc, line)
    return parserdata.GenericStep(line)


def parse_export(line: str, context: data.Context, loc: Location = None) -> parserdata.Node:
    """
    Parse `export NAME=VALUE` or `unexport NAME` and apply it to `context`.

    The value is everything after the first '='. In a recipe step like `export A=1 && make` the rest of the
    command therefore ends up in the value.
    """
    parts = line.strip().split(None, 1)
    kword = parts[0]
    var_expr = parts[1].strip() if len(parts) > 1 else ''

    if not var_expr:
        raise errors.MalformedExportError("Expected a name after '%s'" % (kword,), loc)

    if kword == 'unexport':
        context.unset(var_expr)
        return parserdata.Unexport(var_expr)

    name, t, value = var_expr.partition('=')
    if t == '' or not name.strip():
        raise errors.MalformedExportError("Expected NAME=VALUE expression after 'export'", loc)

    value = value.strip()
    name = context.set(name, value)
    return parserdata.Export(name, value)


def parse_include(line: str, stream: LineStream) -> parserdata.Include:
    tokens = line.split()
    if len(tokens) < 2:
        raise errors.MalformedIncludeError("Expected a file name after 'include'", stream.loc)

    if len(tokens) > 2:
        _log.warning("%s: Ignoring tokens after include statement: %s", stream.loc, tokens[2:])

    path = tokens[1]
    stream.include(path)
    return parserdata.Include(path)


class DirectoryCursor(object):
    """
    The directory the steps of a target run in, as changed by their `cd` commands.
    """
    __slots__ = ('path',)

    def __init__(self, path: str):
        self.path: str = path

    def cd(self, directory: str, loc: Location = None) -> bool:
        new_path = util.normaljoin(self.path, directory)
        if not os.path.isdir(new_path):
            _log.warning("%s: Failed to cd into %s", loc, new_path)
            return False

        _log.info("%s: Changed to %s", loc, new_path)
        self.path = new_path
        return True


def parse_target(line: str, stream: LineStream, context: data.Context) -> parserdata.Target:
    """
    Parse a rule header just read from `stream` and all the tab-indented steps following it.
    """
    loc = stream.loc

    name, t, deps = line.strip().partition(':')
    name = name.strip()
    if t == '' or not name:
        raise errors.MalformedTargetError("Expected a target name followed by ':'", loc)

    doublecolon = deps.startswith(':')
    if doublecolon:
        deps = deps[1:]

    deps, t, command = deps.partition(';')

    defined_in = loc.path if loc is not None else stream.current_file
    target = parserdata.Target(name, deps.split(), defined_in, doublecolon=doublecolon)

    cursor = DirectoryCursor(context.root_dir)

    if command.strip():
        target.steps.append(parse_step(command, context, cursor, loc))

    while stream.peek().startswith('\t'):
        line = stream.read_line(defer=False)
        if line.strip():
            target.steps.append(parse_step(line, context, cursor, stream.loc))

    return target


def parse_step(line: str, context: data.Context, cursor: DirectoryCursor, loc: Location = None) \
        -> parserdata.Node:
    """
    Classify a single step of a target. `cd` steps move `cursor`, which cargo steps resolve their manifest
    path against.
    """
    line = line.strip()

    if line.startswith('#'):
        return parserdata.Comment(line[1:].strip())

    m = _directive(line)
    if m is not None and m.group(1) in ('export', 'unexport'):
        return parse_export(line, context, loc)

    tokens = line.split()

    if tokens[0] == _cargo_command:
        return _parse_cargo(line, tokens, context, cursor, loc)

    if tokens[0] == 'cd':
        if len(tokens) > 1:
            cursor.cd(tokens[1], loc)
        else:
            _log.warning("%s: Expected a directory after 'cd', ignoring it", loc)

    return parserdata.GenericStep(line)


def _parse_cargo(line: str, tokens: List[str], context: data.Context, cursor: DirectoryCursor,
                 loc: Location) -> parserdata.Node:
    subcommand = parserdata.Subcommand.fromtoken(tokens[1] if len(tokens) > 1 else None)
    if subcommand is parserdata.Subcommand.UNRECOGNIZED:
        _log.warning("%s: Unknown cargo subcommand in '%s', treating it as a generic step", loc, line)
        return parserdata.GenericStep(line)

    directory = None
    manifest_path = _find_manifest_path(tokens, loc)
    if manifest_path is not None:
        directory = _manifest_directory(cursor.path, manifest_path, context.root_dir, loc)

    return parserdata.CargoInvocation(subcommand, directory, line)


def _find_manifest_path(tokens: List[str], loc: Location) -> Optional[str]:
    for i, token in enumerate(tokens):
        if token == _manifest_flag:
            if i + 1 < len(tokens):
                return tokens[i + 1]

            _log.warning("%s: Expected a manifest path after %s", loc, _manifest_flag)
            return None

        if token.startswith(_manifest_flag + '='):
            return token[len(_manifest_flag) + 1:]

    return None


def _manifest_directory(cwd: str, manifest_path: str, root_dir: str, loc: Location) -> Optional[str]:
    """
    Return the directory of the manifest relative to `root_dir`, '.' being `root_dir` itself.
    """
    manifest = util.normaljoin(cwd, manifest_path)
    relative = util.relative_to(manifest, root_dir)
    if relative is None:
        _log.warning("%s: Manifest %s is outside of %s", loc, manifest, root_dir)
        return None

    return os.path.dirname(relative) or '.'


def parse_conditional(line: str, stream: LineStream, context: data.Context) -> parserdata.Conditional:
    """
    Parse an ifeq/ifneq block whose first line was just read from `stream`, up to and including its endif.

    A chained `else ifeq ...` is parsed recursively into `elseif`; the endif of the last link in the chain ends
    the whole block.
    """
    startloc = stream.loc

    parts = line.strip().split(None, 1)
    if len(parts) < 2:
        raise errors.MakeSyntaxError("No arguments after conditional", startloc)

    kword, condition = parts
    c = parserdata.Conditional(condition.strip(), expected=kword == 'ifeq')

    while True:
        if stream.eof:
            raise errors.UnterminatedConditionalError("Condition never terminated with endif", startloc)

        next_line = stream.peek().strip()
        m = _directive(next_line)
        kword = m.group(1) if m is not None else None

        if kword == 'endif':
            stream.read_line()
            break

        if kword == 'else':
            rest = next_line[m.end(0):].strip()
            stream.read_line(defer=is_include(rest))
            m = _directive(rest)

            if m is not None and m.group(1) in _conditionkeywords:
                c.elseif = parse_conditional(rest, stream, context)
            else:
                c.else_ = _parse_else(rest, stream, context, startloc)

            break

        statement = parse_statement(stream.read_line(), stream, context)
        if statement is not None:
            c.steps.append(statement)

    return c


def _parse_else(rest: str, stream: LineStream, context: data.Context, startloc: Location) \
        -> parserdata.ElseBranch:
    """
    Parse the plain else branch up to its endif. `rest` is the text after `else` on its own line, which, unless
    it is a comment, is the first line of the branch.
    """
    branch = parserdata.ElseBranch()

    if rest and not rest.startswith('#'):
        statement = parse_statement(rest, stream, context)
        if statement is not None:
            branch.steps.append(statement)

    while True:
        if stream.eof:
            raise errors.UnterminatedConditionalError("Condition never terminated with endif", startloc)

        m = _directive(stream.peek().strip())
        if m is not None and m.group(1) == 'endif':
            stream.read_line()
            return branch

        statement = parse_statement(stream.read_line(), stream, context)
        if statement is not None:
            branch.steps.append(statement)


def _parse(stream: LineStream, pathname: str) -> data.Makefile:
    context = data.Context(os.path.dirname(os.path.abspath(pathname)))
    makefile = data.Makefile(pathname, context)

    while not stream.eof:
        statement = parse_statement(stream.read_line(), stream, context)
        if statement is not None:
            makefile.statements.append(statement)

    return makefile


def parsefile(pathname: str, work_dir: Optional[str] = None) -> data.Makefile:
    """
    Parse a makefile, and every makefile it includes, into a data.Makefile.

    :param pathname: Path to the makefile.
    :param work_dir: Directory relative include paths are resolved against, by default the directory of
                     the makefile.
    """
    pathname = os.path.abspath(pathname)

    with LineStream(pathname, work_dir) as stream:
        return _parse(stream, pathname)


def parsestring(s: str, filename: str, work_dir: Optional[str] = None) -> data.Makefile:
    """
    Parse a string containing makefile data into a data.Makefile. `filename` is used for locations, and its
    directory as the root directory.
    """
    with LineStream.fromstring(s, filename, work_dir) as stream:
        return _parse(stream, filename)
