from __future__ import annotations

import importlib.util
from pathlib import Path
from types import ModuleType

ROOT = Path(__file__).resolve().parents[1]


def _load_checker_module() -> ModuleType:
    module_path = ROOT / "tools" / "check_imports.py"
    spec = importlib.util.spec_from_file_location("check_imports_tool", module_path)
    assert spec is not None
    loader = spec.loader
    assert loader is not None
    module = importlib.util.module_from_spec(spec)
    loader.exec_module(module)
    return module


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_check_file_allows_inward_imports(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "story_spine"
    app_file = source_root / "application" / "session.py"
    _write(
        app_file,
        "from story_spine.core import prompt_builder\nfrom story_spine.domain.draft import StoryDraft\n",
    )
    assert checker.check_file(app_file, source_root) == []


def test_check_file_rejects_domain_importing_core(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "story_spine"
    domain_file = source_root / "domain" / "draft.py"
    _write(domain_file, "from story_spine.core.response_parser import parse_opening\n")
    violations = checker.check_file(domain_file, source_root)
    assert len(violations) == 1
    assert "domain must not import story_spine.core" in violations[0]


def test_check_file_resolves_relative_and_package_imports(tmp_path: Path) -> None:
    checker = _load_checker_module()
    source_root = tmp_path / "src" / "story_spine"
    core_file = source_root / "core" / "prompt_builder.py"
    _write(core_file, "from ..adapters import observability\nfrom story_spine import api\n")
    violations = checker.check_file(core_file, source_root)
    assert [v.split(": ", 1)[1] for v in violations] == [
        "core must not import story_spine.adapters",
        "core must not import story_spine.api",
    ]


def test_repository_respects_layer_boundaries() -> None:
    checker = _load_checker_module()
    assert checker.check_import_boundaries() == []
