from cashmere.config import DEFAULT_IGNORED_DIRS, IGNORE_DIRS_ENV, is_supported_path, resolve_ignored_dirs


def test_explicit_ignored_dirs_win(monkeypatch):
    monkeypatch.setenv(IGNORE_DIRS_ENV, "vendor")
    assert resolve_ignored_dirs(["out", ""]) == {"out"}


def test_ignored_dirs_from_environment(monkeypatch):
    monkeypatch.setenv(IGNORE_DIRS_ENV, "vendor, .cache ,")
    assert resolve_ignored_dirs() == {"vendor", ".cache"}


def test_default_ignored_dirs(monkeypatch):
    monkeypatch.delenv(IGNORE_DIRS_ENV, raising=False)
    ignored = resolve_ignored_dirs()
    assert ignored == set(DEFAULT_IGNORED_DIRS)
    assert "node_modules" in ignored


def test_supported_paths():
    assert is_supported_path("a/b/workflow.ts")
    assert is_supported_path("a/b/worker.CJS")
    assert not is_supported_path("a/b/notes.md")
    assert not is_supported_path("a/b/types.json")
