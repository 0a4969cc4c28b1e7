from typing import TYPE_CHECKING

if TYPE_CHECKING:  # To prevent cyclic and unused imports in runtime.
    from . import parserdata


class MakeError(Exception):
    def __init__(self, message: str, loc: 'parserdata.Location' = None):
        Exception.__init__(self, message)
        self.msg: str = message
        self.loc: 'parserdata.Location' = loc

    def __str__(self):
        location_str = ''
        if self.loc is not None:
            location_str = "%s:" % (self.loc,)

        return "%s%s" % (location_str, self.msg)


class MakeSyntaxError(MakeError):
    pass


class MalformedTargetError(MakeSyntaxError):
    pass


class MalformedExportError(MakeSyntaxError):
    pass


class MalformedIncludeError(MakeSyntaxError):
    pass


class UnterminatedConditionalError(MakeSyntaxError):
    """
    Raised when the input ends inside an ifeq/ifneq block, before its endif.
    """
    pass


class MakeIOError(MakeError):
    """
    Raised when a makefile (the root one or an included one) cannot be opened or read.
    """
    pass


class MakeEncodingError(MakeError):
    pass
