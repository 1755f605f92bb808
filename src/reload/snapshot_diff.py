from typing import Dict, List, Mapping, Set, Union

from .paths import ExtensionClass, classify, get_ns_from_source_file_path

Snapshot = Mapping[str, Union[int, float]]

def get_changed_source_file_paths(old_mtimes: Snapshot,
                                  new_mtimes: Snapshot) -> Dict[ExtensionClass, List[str]]:
    """Paths whose mtime differs between the two snapshots, grouped by extension class.

    A path present on only one side counts as changed.
    """
    grouped: Dict[ExtensionClass, List[str]] = {}
    all_paths = {p for p in set(old_mtimes) | set(new_mtimes) if p is not None}
    for path in sorted(all_paths):
        if old_mtimes.get(path) != new_mtimes.get(path):
            grouped.setdefault(classify(path), []).append(path)
    return grouped

def get_changed_source_file_ns(old_mtimes: Snapshot, new_mtimes: Snapshot) -> Set[str]:
    """Namespaces that changed between two compile runs.

    If any macro (.clj) file changed, every compiled namespace in the new
    snapshot is returned, since a macro can expand into any of them.
    """
    changed = get_changed_source_file_paths(old_mtimes, new_mtimes)
    if changed.get(ExtensionClass.MACRO):
        candidates = [p for p in new_mtimes if classify(p) is ExtensionClass.COMPILED]
    else:
        candidates = changed.get(ExtensionClass.COMPILED, [])

    namespaces = set()
    for path in candidates:
        ns = get_ns_from_source_file_path(path)
        if ns is not None:
            namespaces.add(ns)
    return namespaces
