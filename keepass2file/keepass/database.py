"""KeePass database access."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NamedTuple, Protocol, Sequence

from ..core.errors import CredentialStoreError

logger = logging.getLogger(__name__)


class EntryLike(Protocol):
    """The parts of a KeePass entry the resolver reads."""

    title: str | None
    username: str | None
    password: str | None
    url: str | None
    notes: str | None
    tags: list[str] | None
    otp: str | None

    def get_custom_property(self, key: str) -> str | None: ...


# Standard KeePass fields. pykeepass refuses these names in get_custom_property.
_STANDARD_FIELDS = {
    "Title": "title",
    "UserName": "username",
    "Password": "password",
    "URL": "url",
    "Notes": "notes",
    "Tags": "tags",
    "otp": "otp",
}
_UNREADABLE_FIELDS = frozenset({"IconID", "Times", "History"})


def read_attribute(entry: EntryLike, name: str) -> str | None:
    """Value of the field or custom attribute ``name`` of ``entry``.

    Standard field names read the matching entry property; tags are joined
    with ``;`` as KeePass stores them. Returns None when the entry has no such
    value.
    """
    if name in _UNREADABLE_FIELDS:
        return None
    if name in _STANDARD_FIELDS:
        value = getattr(entry, _STANDARD_FIELDS[name], None)
        if isinstance(value, (list, tuple)):
            return ";".join(value) if value else None
        return value
    return entry.get_custom_property(name)


class GroupLike(Protocol):
    """The parts of a KeePass group used to walk the tree."""

    name: str | None

    @property
    def subgroups(self) -> Sequence[GroupLike]: ...

    @property
    def entries(self) -> Sequence[EntryLike]: ...


class Node(NamedTuple):
    is_group: bool
    value: Any


class CredentialTree:
    """Read-only view over the groups and entries of an open database."""

    def __init__(self, root: GroupLike) -> None:
        self._root = root

    @property
    def root(self) -> GroupLike:
        return self._root

    def lookup(self, path: Sequence[str]) -> Node | None:
        """Find the group or entry at ``path``.

        Every segment but the last names a group. The last segment may name an
        entry (by title) or a group; entries win when both exist. An empty
        path is the root group.

        Args:
            path: Group names followed by the entry title

        Returns:
            The node found, or None when nothing lives at ``path``
        """
        group = self._root
        if not path:
            return Node(is_group=True, value=group)

        *parents, last = path
        for segment in parents:
            group = next((g for g in group.subgroups if g.name == segment), None)
            if group is None:
                return None

        for entry in group.entries:
            if entry.title == last:
                return Node(is_group=False, value=entry)
        for subgroup in group.subgroups:
            if subgroup.name == last:
                return Node(is_group=True, value=subgroup)
        return None


def open_database(path: str | Path, password: str) -> CredentialTree:
    """Open and decrypt a KeePass database.

    Args:
        path: ``.kdbx`` file path
        password: Master password

    Returns:
        Tree over the decrypted database
    """
    db_path = Path(path).expanduser()
    if not db_path.is_file():
        raise CredentialStoreError(f"KeePass database not found: {db_path}")

    try:
        from construct import ConstructError
        from pykeepass import PyKeePass
        from pykeepass.exceptions import (
            CredentialsError,
            HeaderChecksumError,
            PayloadChecksumError,
        )
    except ImportError as e:
        raise CredentialStoreError(
            "Reading KeePass databases requires pykeepass: "
            "pip install pykeepass"
        ) from e

    logger.debug(f"Opening KeePass database: {db_path}")
    try:
        database = PyKeePass(str(db_path), password=password)
    except CredentialsError as e:
        raise CredentialStoreError(
            "Database cannot be opened, maybe the password is wrong?"
        ) from e
    except (
        HeaderChecksumError, PayloadChecksumError, ConstructError, OSError
    ) as e:
        raise CredentialStoreError(f"Database cannot be read: {db_path}: {e}") from e

    return CredentialTree(database.root_group)
