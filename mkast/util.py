import os
from pathlib import Path
from typing import Optional, Union


def normaljoin(path: Union[str, Path], suffix: Union[str, Path]) -> str:
    """
    Combine the given path with the suffix and normalize the result, collapsing any '..' components.
    An absolute suffix replaces the path.
    """
    return os.path.normpath(os.path.join(path, suffix))


def relative_to(path: Union[str, Path], root: Union[str, Path]) -> Optional[str]:
    """
    Return `path` relative to `root`, or None if `path` does not lie under `root`.
    """
    path = os.path.normpath(path)
    root = os.path.normpath(root)

    if path == root:
        return '.'

    prefix = root if root.endswith(os.sep) else root + os.sep
    if not path.startswith(prefix):
        return None

    return path[len(prefix):]
