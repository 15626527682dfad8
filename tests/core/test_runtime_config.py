from pathlib import Path

import pytest

from sketchbook.core.runtime_config import output_root_dir, runtime_config, set_config_path


@pytest.fixture(autouse=True)
def _reset_runtime_config() -> None:
    set_config_path(None)
    yield
    set_config_path(None)


def _isolate_config_discovery(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_packaged_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    assert output_root_dir() == Path("data") / "output"
    cfg = runtime_config()
    assert cfg.config_path is None
    assert cfg.sketch_dir == Path("sketch")
    assert (cfg.sketch_width, cfg.sketch_height, cfg.sketch_resolution) == (1250, 1250, 1.0)
    assert cfg.window_position == (40, 40)
    assert cfg.min_size == (800, 800)
    assert cfg.render_backend == "window"
    assert cfg.antialias is True
    assert cfg.background_color == (1.0, 1.0, 1.0)
    assert cfg.export_mime == "image/png"
    assert cfg.recording_fps == 60


def test_runtime_config_is_cached_until_path_changes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)
    assert runtime_config() is runtime_config()


def test_discovered_config_overrides_only_given_keys(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)
    discovered = _write(
        tmp_path / ".sketchbook" / "config.yaml",
        'paths:\n  output_dir: "./out_discovered"\nsketch:\n  width: 640\n',
    )

    cfg = runtime_config()
    assert cfg.config_path == discovered
    assert cfg.output_dir == Path("out_discovered")
    assert cfg.sketch_dir == Path("sketch")
    assert cfg.sketch_width == 640
    assert cfg.sketch_height == 1250


def test_home_config_is_discovered(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)
    _write(tmp_path / ".config" / "sketchbook" / "config.yaml", "render:\n  backend: headless\n")
    assert runtime_config().render_backend == "headless"


def test_explicit_config_overrides_discovered_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)
    _write(tmp_path / ".sketchbook" / "config.yaml", "recording:\n  fps: 24\nexport:\n  mime: image/jpeg\n")
    explicit = _write(tmp_path / "explicit.yaml", "recording:\n  fps: 30\n")

    set_config_path(explicit)
    cfg = runtime_config()
    assert cfg.config_path == explicit
    assert cfg.recording_fps == 30
    assert cfg.export_mime == "image/jpeg"


def test_missing_explicit_config_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)
    set_config_path(tmp_path / "nope.yaml")
    with pytest.raises(FileNotFoundError):
        runtime_config()


@pytest.mark.parametrize(
    "text, error",
    [
        ("version: 2\n", RuntimeError),
        ("render:\n  backend: webgl\n", ValueError),
        ("sketch:\n  width: -1\n", ValueError),
        ("ui:\n  min_size: [1, 2, 3]\n", RuntimeError),
        ("render:\n  background_color: [2, 0, 0]\n", ValueError),
        ("export:\n  mime: image/gif\n", ValueError),
        ("- not\n- a mapping\n", RuntimeError),
        ("paths: [1, 2]\n", RuntimeError),
    ],
)
def test_invalid_values_are_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, text, error):
    _isolate_config_discovery(tmp_path, monkeypatch)
    set_config_path(_write(tmp_path / "bad.yaml", text))
    with pytest.raises(error):
        runtime_config()
