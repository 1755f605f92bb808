import pytest
from pathlib import Path
from typing import Callable

from src.core.config_manager import ReloadConfig
from src.reload.change_log import ChangeLog

@pytest.fixture
def change_log() -> ChangeLog:
    return ChangeLog()

@pytest.fixture
def write_source(tmp_path: Path) -> Callable[[str, str], str]:
    """Write a source file under tmp_path and return its path as a string"""
    def _write(relative: str, content: str) -> str:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return str(path)
    return _write

@pytest.fixture
def project_config(tmp_path: Path) -> ReloadConfig:
    """A project laid out like resources/public/js/compiled/..."""
    public = tmp_path / "resources" / "public"
    (public / "js" / "compiled" / "out" / "goog").mkdir(parents=True)
    (public / "css").mkdir(parents=True)
    (public / "index.html").write_text("<html><body>hello</body></html>")
    (public / "js" / "compiled" / "main.js").write_text("// main")
    (public / "js" / "compiled" / "out" / "goog" / "deps.js").write_text("goog.addDependency('a');")
    return ReloadConfig(
        root=str(tmp_path),
        resource_paths=[str(tmp_path / "resources")],
        output_dir=str(public / "js" / "compiled" / "out"),
        output_to=str(public / "js" / "compiled" / "main.js"),
        css_dirs=[str(public / "css")],
    )
