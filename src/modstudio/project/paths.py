"""
Virtual folder helpers.

Folders are not stored as a tree. A name such as ``weapons/smg/r97`` lives in
folder ``weapons/smg``, which itself lives in ``weapons``. Every helper here is
a pure string function and accepts any string, including names without ``/``.
"""

from typing import List, Optional

SEPARATOR = "/"


def is_descendant(path: str, ancestor: str) -> bool:
    """Check whether ``path`` is ``ancestor`` itself or nested below it.

    Args:
        path: Folder path or artifact name to test
        ancestor: Candidate ancestor folder path

    Returns:
        True if ``path == ancestor`` or ``path`` starts with ``ancestor + "/"``
    """
    return path == ancestor or path.startswith(ancestor + SEPARATOR)


def rebase(path: str, old_prefix: str, new_prefix: str) -> str:
    """Move ``path`` from under ``old_prefix`` to under ``new_prefix``.

    Paths that are not descendants of ``old_prefix`` are returned unchanged.

    Example:
        >>> rebase("weapons/sub/b", "weapons", "guns")
        'guns/sub/b'
        >>> rebase("weaponsmith", "weapons", "guns")
        'weaponsmith'
    """
    if path == old_prefix:
        return new_prefix
    if path.startswith(old_prefix + SEPARATOR):
        return new_prefix + path[len(old_prefix):]
    return path


def parent_of(path: str) -> Optional[str]:
    """Get the containing folder of ``path``, or None for top-level names."""
    index = path.rfind(SEPARATOR)
    if index == -1:
        return None
    return path[:index]


def basename(path: str) -> str:
    """Get the last segment of ``path``."""
    return path.rsplit(SEPARATOR, 1)[-1]


def ancestors(path: str) -> List[str]:
    """List every ancestor folder of ``path``, outermost first.

    Example:
        >>> ancestors("a/b/c")
        ['a', 'a/b']
    """
    result: List[str] = []
    parent = parent_of(path)
    while parent is not None:
        result.append(parent)
        parent = parent_of(parent)
    result.reverse()
    return result


def normalize_path(path: str) -> str:
    """Collapse repeated separators and strip leading/trailing ones.

    Applied to folder paths entered through the document engine.
    """
    return SEPARATOR.join(part for part in path.strip().split(SEPARATOR) if part)
