"""matter_rag.app.access

Matter-level access checks for the HTTP layer.

An access policy is any callable ``(actor, matter_id, action) -> bool``.
``actor`` is the caller identity taken from the request (``None`` when the
caller is anonymous) and ``action`` is one of :data:`READ` or :data:`EDIT`.
Ingestion and deletion require ``EDIT``; listing, retrieval, analysis and
tools require ``READ``.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Set

READ = "read"
EDIT = "edit"

AccessPolicy = Callable[[Optional[str], str, str], bool]


def allow_all(actor: Optional[str], matter_id: str, action: str) -> bool:
    return True


class MatterGrants:
    """Static per-matter grants.

    Parameters
    ----------
    grants : Mapping[str, Mapping[str, str]]
        ``{matter_id: {actor: permission}}`` where permission is ``"read"``
        or ``"edit"``. Edit implies read.

    Examples
    --------
    >>> policy = MatterGrants({"m1": {"alice": "edit", "bob": "read"}})
    >>> policy("bob", "m1", "read"), policy("bob", "m1", "edit"), policy(None, "m1", "read")
    (True, False, False)
    """

    def __init__(self, grants: Mapping[str, Mapping[str, str]]):
        self.grants = {m: dict(actors) for m, actors in grants.items()}

    def __call__(self, actor: Optional[str], matter_id: str, action: str) -> bool:
        if actor is None:
            return False
        permission = self.grants.get(matter_id, {}).get(actor)
        allowed: Set[str] = {READ, EDIT} if permission == EDIT else {READ} if permission == READ else set()
        return action in allowed


__all__ = ["READ", "EDIT", "AccessPolicy", "allow_all", "MatterGrants"]
