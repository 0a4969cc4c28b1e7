# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.
"""
Command line front end: parse a makefile and print its AST and final variable context.
"""

import logging
import os
from optparse import OptionParser

from . import __version__, errors, parser, util

_log = logging.getLogger('mkast.execution')


# noinspection PyUnusedLocal
def _version(*args):
    print("""mkast %s: static parser for makefiles driving cargo builds
THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND.""" % (__version__,))


def main(args, cwd, cb):
    """
    Parse a single makefile, given a command line and working directory.

    :param args: Command line arguments, without the program name.
    :param cwd:  Directory relative paths on the command line are resolved against.
    :param cb:   A callback to notify with an exit code when parsing is finished.
    """

    try:
        op = OptionParser(usage="%prog [options] [MAKEFILE]")
        op.add_option('-f', '--file', '--makefile',
                      dest='makefile', default=None)
        op.add_option('-d',
                      action="store_true",
                      dest="verbose", default=False)
        # noinspection SpellCheckingInspection
        op.add_option('--debug-log',
                      dest="debuglog", default=None)
        op.add_option('-C', '--directory',
                      dest="directory", default=None)
        # noinspection SpellCheckingInspection
        op.add_option('-v', '--version', action="store_true",
                      dest="printversion", default=False)

        options, arguments = op.parse_args(args)

        op.destroy()

        if options.printversion:
            _version()
            cb(0)
            return

        log_level = logging.WARNING
        if options.verbose:
            log_level = logging.DEBUG

        log_kwargs = {}
        if options.debuglog:
            log_kwargs['filename'] = options.debuglog

        logging.basicConfig(level=log_level, **log_kwargs)

        if options.directory is None:
            work_dir = cwd
        else:
            work_dir = util.normaljoin(cwd, options.directory)

        makefile = options.makefile
        if makefile is None and len(arguments):
            makefile = arguments.pop(0)
        if len(arguments):
            _log.warning("Ignoring extra arguments: %s", arguments)

        if makefile is None:
            makefile = 'Makefile'

        makefile = util.normaljoin(work_dir, makefile)
        if not os.path.isfile(makefile):
            print("No makefile found")
            cb(2)
            return

        _log.info("Parsing %s", makefile)
        print(parser.parsefile(makefile), end='')
    except errors.MakeError as e:
        print(e)
        cb(2)
        return

    cb(0)
