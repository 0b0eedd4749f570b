"""Organize a user's flat notes and folders: tree, search, breadcrumbs, titles, recency.

Everything here is pure and synchronous. Inputs are never mutated and malformed
hierarchy references (dangling parents, cyclic folder chains) are recovered from
instead of raised: the offending node is attached at root.
"""

import unicodedata
from collections.abc import Sequence
from datetime import datetime, timezone

from app.schemas.folder import (
    FolderNode,
    FolderResponse,
    NoteNode,
    TreeAnomaly,
    TreeBuildResult,
    TreeNode,
)
from app.schemas.note import NoteResponse

DEFAULT_TITLE = "Untitled"

# Arena walk states for folder parent resolution
_UNSEEN, _ON_PATH, _ANCHORED = 0, 1, 2


def name_sort_key(name: str) -> tuple[str, str, str]:
    """Locale-style key: accents and case ignored first, lowercase before uppercase on ties."""
    folded = name.casefold()
    base = "".join(
        c for c in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(c)
    )
    return (base, folded, name.swapcase())


def _node_sort_key(node: TreeNode) -> tuple[int, tuple[str, str, str]]:
    return (0 if node.type == "folder" else 1, name_sort_key(node.name))


def _sort_tree(roots: list[TreeNode]) -> None:
    stack = [roots]
    while stack:
        level = stack.pop()
        level.sort(key=_node_sort_key)
        for node in level:
            if isinstance(node, FolderNode) and node.children:
                stack.append(node.children)


def _resolve_folder_parents(
    folders: Sequence[FolderResponse],
    index_of: dict[str, int],
) -> tuple[list[int | None], dict[int, TreeAnomaly]]:
    """Map each folder to its parent's arena index, or None for root.

    Dangling parents become root. A parent chain that re-enters itself is broken
    at the folder that closes the loop, which then also becomes root.
    """
    parents: list[int | None] = []
    anomalies: dict[int, TreeAnomaly] = {}
    for i, folder in enumerate(folders):
        if not folder.parent_id:
            parents.append(None)
        elif folder.parent_id in index_of:
            parents.append(index_of[folder.parent_id])
        else:
            parents.append(None)
            anomalies[i] = TreeAnomaly(
                node_id=folder.id, kind="dangling_parent", parent_id=folder.parent_id
            )

    state = [_UNSEEN] * len(folders)
    for start in range(len(folders)):
        walk: list[int] = []
        current = start
        while current is not None and state[current] == _UNSEEN:
            state[current] = _ON_PATH
            walk.append(current)
            current = parents[current]
        if current is not None and state[current] == _ON_PATH:
            closer = walk[-1]
            parents[closer] = None
            anomalies[closer] = TreeAnomaly(
                node_id=folders[closer].id,
                kind="cycle",
                parent_id=folders[closer].parent_id or "",
            )
        for i in walk:
            state[i] = _ANCHORED
    return parents, anomalies


def build_tree_report(
    notes: Sequence[NoteResponse], folders: Sequence[FolderResponse]
) -> TreeBuildResult:
    """Build the sorted folder/note forest and report every recovered anomaly.

    Only folders can be parents: a parent id naming a note counts as dangling.
    """
    index_of: dict[str, int] = {}
    for i, folder in enumerate(folders):
        index_of[folder.id] = i
    parents, folder_anomalies = _resolve_folder_parents(folders, index_of)

    folder_nodes = [
        FolderNode(id=f.id, name=f.name, parent_id=f.parent_id, children=[]) for f in folders
    ]
    roots: list[TreeNode] = []
    for node, parent in zip(folder_nodes, parents):
        if parent is None:
            roots.append(node)
        else:
            folder_nodes[parent].children.append(node)

    anomalies = [folder_anomalies[i] for i in sorted(folder_anomalies)]
    for note in notes:
        node = NoteNode(id=note.id, name=note.title, parent_id=note.folder_id)
        if not note.folder_id:
            roots.append(node)
        elif note.folder_id in index_of:
            folder_nodes[index_of[note.folder_id]].children.append(node)
        else:
            roots.append(node)
            anomalies.append(
                TreeAnomaly(node_id=note.id, kind="dangling_parent", parent_id=note.folder_id)
            )

    _sort_tree(roots)
    return TreeBuildResult(nodes=roots, anomalies=anomalies)


def build_tree(
    notes: Sequence[NoteResponse], folders: Sequence[FolderResponse]
) -> list[TreeNode]:
    """Build the root-level nodes of the folder tree, notes nested under their folder."""
    return build_tree_report(notes, folders).nodes


def search_notes(notes: Sequence[NoteResponse], query: str) -> Sequence[NoteResponse]:
    """Case-insensitive substring match on title or content; blank query returns input as is."""
    if not query.strip():
        return notes
    term = query.casefold()
    return [n for n in notes if term in n.title.casefold() or term in n.content.casefold()]


def get_folder_path(
    folder_id: str | None, folders: Sequence[FolderResponse]
) -> list[FolderResponse]:
    """Breadcrumb from the root-most reachable ancestor down to folder_id (inclusive).

    Stops silently at an unknown id or when a folder repeats.
    """
    if not folder_id:
        return []
    by_id: dict[str, FolderResponse] = {}
    for folder in folders:
        by_id.setdefault(folder.id, folder)

    path: list[FolderResponse] = []
    seen: set[str] = set()
    current: str | None = folder_id
    while current and current not in seen:
        folder = by_id.get(current)
        if folder is None:
            break
        seen.add(current)
        path.append(folder)
        current = folder.parent_id
    path.reverse()
    return path


def is_descendant_or_self(
    candidate_id: str, folder_id: str, folders: Sequence[FolderResponse]
) -> bool:
    return any(f.id == folder_id for f in get_folder_path(candidate_id, folders))


def generate_unique_title(existing_titles: Sequence[str], base_title: str = DEFAULT_TITLE) -> str:
    taken = set(existing_titles)
    if base_title not in taken:
        return base_title
    counter = 1
    while f"{base_title} {counter}" in taken:
        counter += 1
    return f"{base_title} {counter}"


def _timestamp(value: datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def get_recent_notes(notes: Sequence[NoteResponse], limit: int = 10) -> list[NoteResponse]:
    """Most recently updated first; equal timestamps keep input order."""
    if limit <= 0:
        return []
    return sorted(notes, key=lambda n: _timestamp(n.updated_at), reverse=True)[:limit]
