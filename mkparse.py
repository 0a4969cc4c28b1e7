#!/usr/bin/env python

"""
mkparse.py

Parse a makefile, without running anything, and print the resulting AST.
"""
import os
import sys

from mkast import command

if __name__ == '__main__':
    command.main(sys.argv[1:], os.getcwd(), cb=sys.exit)
