import pytest

from src.reload.paths import ExtensionClass
from src.reload.snapshot_diff import get_changed_source_file_ns, get_changed_source_file_paths

@pytest.fixture
def sources(write_source):
    return {
        "a": write_source("src/app/core.cljs", "(ns app.core)"),
        "b": write_source("src/app/util.cljs", "(ns app.util-fns)"),
        "c": write_source("src/app/views.cljs", "(ns app.views)"),
        "broken": write_source("src/app/broken.cljs", "(ns "),
        "macro": write_source("src/app/macros.clj", "(ns app.macros)"),
    }

class TestChangedPaths:
    def test_groups_by_extension(self, sources):
        old = {sources["a"]: 1, sources["macro"]: 1, "README.md": 1}
        new = {sources["a"]: 2, sources["macro"]: 2, "README.md": 2}
        grouped = get_changed_source_file_paths(old, new)
        assert grouped[ExtensionClass.COMPILED] == [sources["a"]]
        assert grouped[ExtensionClass.MACRO] == [sources["macro"]]
        assert grouped[ExtensionClass.OTHER] == ["README.md"]

    def test_added_and_removed_paths_count(self, sources):
        grouped = get_changed_source_file_paths({sources["a"]: 1}, {sources["b"]: 1})
        assert sorted(grouped[ExtensionClass.COMPILED]) == sorted([sources["a"], sources["b"]])

    def test_inputs_not_mutated(self, sources):
        old = {sources["a"]: 1}
        new = {sources["a"]: 2}
        get_changed_source_file_ns(old, new)
        assert old == {sources["a"]: 1}
        assert new == {sources["a"]: 2}

class TestChangedNamespaces:
    def test_same_snapshot_is_empty(self, sources):
        snapshot = {path: 5 for path in sources.values()}
        assert get_changed_source_file_ns(snapshot, dict(snapshot)) == set()

    def test_single_compiled_change(self, sources):
        old = {sources["a"]: 1, sources["b"]: 1}
        new = {sources["a"]: 2, sources["b"]: 1}
        assert get_changed_source_file_ns(old, new) == {"app.core"}

    def test_dashes_become_underscores(self, sources):
        assert get_changed_source_file_ns({}, {sources["b"]: 1}) == {"app.util_fns"}

    def test_macro_change_returns_every_namespace(self, sources):
        old = {sources["a"]: 1, sources["b"]: 1, sources["c"]: 1,
               sources["broken"]: 1, sources["macro"]: 1}
        new = dict(old, **{sources["macro"]: 2})
        assert get_changed_source_file_ns(old, new) == {"app.core", "app.util_fns", "app.views"}

    def test_macro_change_uses_new_snapshot(self, sources):
        old = {sources["a"]: 1, sources["c"]: 1, sources["macro"]: 1}
        new = {sources["a"]: 1, sources["macro"]: 2}
        assert get_changed_source_file_ns(old, new) == {"app.core"}

    def test_unparseable_files_dropped(self, sources):
        assert get_changed_source_file_ns({sources["broken"]: 1}, {sources["broken"]: 2}) == set()

    def test_deleted_file_dropped(self, tmp_path):
        gone = str(tmp_path / "gone.cljs")
        assert get_changed_source_file_ns({gone: 1}, {}) == set()

    def test_non_source_changes_ignored(self, sources):
        assert get_changed_source_file_ns({"out/main.js": 1}, {"out/main.js": 2}) == set()
