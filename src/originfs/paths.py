"""
Path normalization between the store-native location strings and the
client-side keys used by the path index.

A store-native location looks like ``origin/(c) users/<owner>/docs``; the
matching client key is ``/docs``. Keys are lowercase, start with ``/``, have no
repeated or trailing separators and the root is ``/``.
"""
import re
from typing import Tuple

from .models import Record

ROOT_PREFIX = "origin/(c) users/"

_REPEATED_SEP = re.compile(r"/+")


def _normalize(path: str) -> str:
    path = _REPEATED_SEP.sub("/", "/" + path)
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


def clean_path(path: str) -> str:
    """Turn a raw remote path into an index key. Pure and idempotent."""
    path = path.lower()
    if path.startswith(ROOT_PREFIX):
        path = path[len(ROOT_PREFIX):]

    # The first remaining segment is the owner's username.
    parts = path.split("/")
    path = "/".join(parts[1:]) if len(parts) >= 2 else ""
    return _normalize(path)


def record_to_path(record: Record) -> str:
    """Rebuild the index key of a record from its location, name and type."""
    location = str(record.location or "")
    if location.startswith("/"):
        location = location[1:]
    leaf = str(record.name or "")
    if not record.is_folder:
        leaf += str(record.type or "")
    return clean_path(location + "/" + leaf)


def format_path(owner: str, directory: str) -> str:
    """Build the store-native location string for a client directory."""
    base = f"{ROOT_PREFIX}{owner}/"
    directory = directory[1:] if directory.startswith("/") else directory
    directory = directory[:-1] if directory.endswith("/") else directory
    formatted = base + directory
    return formatted[:-1] if formatted.endswith("/") else formatted


def parent_and_leaf(path: str) -> Tuple[str, str]:
    """Split at the last separator: ``/a/b/c.txt`` -> (``/a/b``, ``c.txt``)."""
    slash = path.rfind("/")
    if slash < 0:
        return "", path
    return path[:slash], path[slash + 1:]


def split_name(leaf: str) -> Tuple[str, str]:
    """
    Split a final path segment at its last dot.

    ``archive.tar.gz`` -> (``archive.tar``, ``.gz``); ``README`` -> (``README``, ``""``).
    """
    dot = leaf.rfind(".")
    if dot < 0:
        return leaf, ""
    return leaf[:dot], leaf[dot:]


def join_path(*elements: str) -> str:
    joined = _REPEATED_SEP.sub("/", "/".join(elements))
    if joined.endswith("/"):
        joined = joined[:-1]
    if not joined.startswith("/"):
        joined = "/" + joined
    return joined.lower()

