"""
Bundle packaging.

Turns a set of absolute file paths into a mount point plus a bundle of
relative names, so the files can be uploaded as one artifact and mounted
back at their common directory inside the workload.
"""

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

SEPARATOR = "/"


class PackagedBundle(NamedTuple):
    """Mount point and the files relative to it."""
    mount_point: str
    files: dict[str, bytes]


def extract_common_root(files: dict[str, bytes]) -> PackagedBundle:
    """
    Find the longest directory prefix shared by every key and strip it.

    Example:
        {"/root/sub/one": a, "/root/sub/two": b}
        -> PackagedBundle("/root/sub/", {"one": a, "two": b})

    An empty bundle packages to ``("", {})``. When the keys share no
    directory the root is ``""`` and keys pass through unchanged. Packaging
    never fails; odd keys are passed through as-is.
    """
    if not files:
        return PackagedBundle("", {})

    root = next(iter(files))
    found = SEPARATOR not in root
    if found:
        root = ""

    while not found and root.rfind(SEPARATOR) > 0:
        root = root[: root.rfind(SEPARATOR) + 1]
        found = all(key.startswith(root) for key in files)
        if not found:
            # Drop the trailing separator so the next pass trims a directory.
            root = root[:-1]

    if not found:
        # No shared directory beyond the filesystem root.
        root = ""

    packaged = {key.replace(root, "", 1): value for key, value in files.items()}
    logger.debug("Extracted root path '%s' for %d files", root, len(files))
    return PackagedBundle(root, packaged)
