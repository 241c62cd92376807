import io
import logging

import pytest
import structlog
from structlog.testing import capture_logs

from htmlpress import HtmlPress
from htmlpress import main as cli
from htmlpress.config import AppConfig, LoggingConfig, PressOptions


def _config(**options) -> AppConfig:
    options.setdefault("js_minifier", "passthrough")
    return AppConfig(options=PressOptions(**options), logging=LoggingConfig(level=logging.INFO))


def test_in_place_rewrites_files(tmp_path) -> None:
    page = tmp_path / "index.html"
    page.write_text("<div>\n     <p>x</p>\n</div>\n", encoding="utf-8")

    with capture_logs() as logs:
        code = cli.main(_config(), [str(page), "--in-place"])

    assert code == 0
    assert page.read_text(encoding="utf-8") == "<div>\n  <p>x</p>\n</div>"
    assert "file_pressed" in [entry["event"] for entry in logs]


def test_stdin_to_stdout(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("<p>  a  </p>\n"))

    with capture_logs():
        code = cli.main(_config(), [])

    assert code == 0
    assert capsys.readouterr().out == "<p>a</p>"


def test_output_file_and_cache_dir(tmp_path) -> None:
    page = tmp_path / "page.html"
    page.write_text("<ul>\n<li> a </li>\n</ul>", encoding="utf-8")
    target = tmp_path / "out.html"
    cache_dir = tmp_path / "cache"

    with capture_logs():
        code = cli.main(_config(), [str(page), "-o", str(target), "--cache-dir", str(cache_dir)])

    assert code == 0
    assert target.read_text(encoding="utf-8") == "<ul>\n  <li>a</li>\n</ul>"
    assert len(list((cache_dir / "html").iterdir())) == 1


def test_output_requires_single_file(tmp_path) -> None:
    first = tmp_path / "a.html"
    second = tmp_path / "b.html"
    first.write_text("<p>a</p>", encoding="utf-8")
    second.write_text("<p>b</p>", encoding="utf-8")

    with capture_logs() as logs:
        code = cli.main(_config(), [str(first), str(second), "-o", str(tmp_path / "out.html")])

    assert code == 2
    assert logs[-1]["event"] == "output_requires_single_file"


def test_press_errors_map_to_exit_code(tmp_path) -> None:
    page = tmp_path / "style.html"
    page.write_text("<style>a { b: c }</style>", encoding="utf-8")
    config = _config(css_minifier="lightningcss", css_binary=tmp_path / "missing")

    with capture_logs() as logs:
        code = cli.main(config, [str(page), "-i"])

    assert code == 1
    assert page.read_text(encoding="utf-8") == "<style>a { b: c }</style>"
    assert logs[-1]["event"] == "press_failed"


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    structlog.reset_defaults()


def test_configure_logging_installs_json_handler(root_logger) -> None:
    cli.configure_logging(logging.WARNING)

    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert structlog.is_configured()


def test_configured_logging_drops_engine_debug_events(root_logger, capsys: pytest.CaptureFixture[str]) -> None:
    cli.configure_logging(logging.INFO)

    result = HtmlPress(js_minifier="passthrough").press("<p>  a  </p>")

    captured = capsys.readouterr()
    assert result == "<p>a</p>"
    assert captured.out == ""
    assert "document_pressed" not in captured.err
