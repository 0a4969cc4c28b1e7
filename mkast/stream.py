"""
A stream of logical makefile lines read lazily from a stack of files.

Each `include` pushes a new file on the stack, so the lines of the included file come out of the stream
right after the include directive, followed by the rest of the including file. A logical line is one or
more physical lines joined at trailing backslashes; blank lines never come out of the stream.
"""
import logging
import os
import re
from io import StringIO
from typing import IO, List, Optional

from . import errors, util
from .parserdata import Location

_log = logging.getLogger('mkast.stream')

# `include` followed by whitespace or the end of the line, but not an assignment to a variable named include
_includere = re.compile(r'include(?:$|\s(?!\s*[:+?]*=))')


def is_include(line: str) -> bool:
    """
    Whether `line` is an include directive. Leading whitespace, tabs included, is ignored: recipe lines are
    read with read_line(defer=False) by the rule parser and never get here.
    """
    return _includere.match(line.strip()) is not None


class _Frame(object):
    __slots__ = ('fd', 'path', 'lineno')

    def __init__(self, fd: IO[str], path: str):
        self.fd: IO[str] = fd
        self.path: str = path
        self.lineno: int = 0

    def readline(self) -> Optional[str]:
        """
        Return the next physical line without its line ending, or None if the file is exhausted.
        """
        try:
            line = self.fd.readline()
        except UnicodeDecodeError as e:
            raise errors.MakeEncodingError("File is not valid UTF-8 text: %s" % (e,),
                                           Location(self.path, self.lineno + 1))
        except OSError as e:
            raise errors.MakeIOError("Failed to read file: %s" % (e,), Location(self.path, self.lineno + 1))

        if line == '':
            return None

        self.lineno += 1
        return line.rstrip('\r\n')


class LineStream(object):
    """
    One-line lookahead over the logical lines of a makefile and everything it includes.

    peek() shows the next logical line; read_line() returns it and moves on. When the returned line is an
    include directive, read_line() does not move on: the caller has to call include() with the path, which
    pushes the file and makes its first line the next one.

    A trailing backslash on the last line of a file continues onto nothing: joining never crosses from an
    included file back into the file including it.
    """

    def __init__(self, path: str, work_dir: Optional[str] = None, *, fd: Optional[IO[str]] = None):
        """
        :param path:     Path of the root makefile. When `fd` is given it is only used for locations.
        :param work_dir: Directory relative include paths are resolved against. Defaults to the directory
                         of the root makefile, as if make were run there.
        :param fd:       Already opened root makefile.
        """
        if work_dir is None:
            work_dir = os.path.dirname(os.path.abspath(path))

        self.work_dir: str = work_dir
        self.eof: bool = False
        self.loc: Optional[Location] = None
        """Location of the line last returned by read_line()."""

        self._frames: List[_Frame] = []
        self._next_line: str = ''
        self._next_loc: Optional[Location] = None

        if fd is None:
            self._push(path)
        else:
            self._frames.append(_Frame(fd, path))

        try:
            self._advance()
        except errors.MakeError:
            self.close()
            raise

    @staticmethod
    def fromstring(s: str, path: str, work_dir: Optional[str] = None) -> 'LineStream':
        return LineStream(path, work_dir, fd=StringIO(s))

    @property
    def current_file(self) -> Optional[str]:
        if not self._frames:
            return None

        return self._frames[-1].path

    def peek(self) -> str:
        """
        Return the next logical line without consuming it, or '' at the end of the input.
        """
        return self._next_line

    def read_line(self, defer: Optional[bool] = None) -> str:
        """
        Return the next logical line and move on to the one after it.

        :param defer: Whether the returned line ends with an include directive, so moving on has to wait for
                      include(). By default this is decided by is_include() on the whole line.
        """
        line = self._next_line
        self.loc = self._next_loc

        if defer is None:
            defer = is_include(line)

        # The line after an include directive is the first line of the included file, which is only known
        # once include() is called.
        if not defer:
            self._advance()

        return line

    def include(self, path: str) -> None:
        """
        Continue reading from the file at `path` until it is exhausted, then with the current file.
        """
        self._push(util.normaljoin(self.work_dir, path))
        self._advance()

    def close(self) -> None:
        while self._frames:
            self._frames.pop().fd.close()

    def __enter__(self) -> 'LineStream':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _push(self, path: str) -> None:
        try:
            fd = open(path, 'r', encoding='utf-8')
        except OSError as e:
            raise errors.MakeIOError("Failed to open file '%s': %s" % (path, e.strerror), self.loc)

        _log.debug("Reading makefile '%s'", path)
        self._frames.append(_Frame(fd, path))

    def _advance(self) -> None:
        while self._frames:
            frame = self._frames[-1]
            line = frame.readline()
            if line is None:
                _log.debug("Finished reading makefile '%s'", frame.path)
                self._frames.pop().fd.close()
                continue

            if not line.strip():
                continue

            self._next_loc = Location(frame.path, frame.lineno)
            self._next_line = self._join(frame, line)
            self.eof = False
            return

        self.eof = True
        self._next_line = ''
        self._next_loc = None

    def _join(self, frame: _Frame, line: str) -> str:
        """
        Join `line` with the lines following it in the same file while it ends with a continuation backslash.
        """
        if line.lstrip().startswith('#') or not line.endswith('\\'):
            return line

        line = line[:-1]
        while True:
            next_line = frame.readline()
            if next_line is None or not next_line.strip():
                return line

            if next_line.strip().startswith('#'):
                _log.warning("%s:%s: Ignoring a comment line following a line continuation: %s",
                             frame.path, frame.lineno, next_line.strip())
                continue

            return line + self._join(frame, next_line).strip()
