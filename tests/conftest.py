import sys
import threading
from pathlib import Path
from trace import PRAGMA_NOCOVER, _find_executable_linenos

import pytest

# Package imports live in fixtures; this module loads before tracing starts.

COVERAGE_THRESHOLD = 80.0
PROJECT_ROOT = Path(__file__).resolve().parent.parent
PACKAGE_ROOT = PROJECT_ROOT / "summarizer_proxy"

PROXY_ENV_VARS = (
    "OPENAI_API_KEY",
    "PORT",
    "HOST",
    "PROXY_PROFILE",
    "API_KEY_POLICY",
    "OPENAI_BASE_URL",
    "SUMMARY_MODEL",
    "SLIDES_MODEL",
    "MIN_TEXT_LENGTH",
    "THROTTLE_INTERVAL_MS",
    "MAX_BODY_BYTES",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "LOG_TIMEZONE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Clear proxy variables and keep a stray `.env` from leaking into tests."""

    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("summarizer_proxy.config.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


@pytest.fixture
def upstream():
    from tests.fakes import FakeUpstream

    return FakeUpstream()


@pytest.fixture
def config():
    from summarizer_proxy.config import Config
    from tests.fakes import FAKE_API_KEY

    return Config(openai_api_key=FAKE_API_KEY, throttle_interval_ms=0)


@pytest.fixture
def client(config, upstream):
    from fastapi.testclient import TestClient

    from summarizer_proxy.api import create_app

    return TestClient(create_app(config, ai_client=upstream.ai_client()))


@pytest.fixture
def slides_client(upstream):
    from fastapi.testclient import TestClient

    from summarizer_proxy.api import create_app
    from summarizer_proxy.config import PROFILE_SLIDES, Config
    from tests.fakes import FAKE_API_KEY

    config = Config(openai_api_key=FAKE_API_KEY, profile=PROFILE_SLIDES, port=3000)
    return TestClient(create_app(config, ai_client=upstream.ai_client()))


class PackageLineTracer:
    """Count executed lines, matching frames to files by resolved path."""

    def __init__(self, root: Path):
        self.root = root.resolve()
        self.hit_lines: dict[Path, set[int]] = {}
        self._paths: dict[str, Path | None] = {}

    def _package_path(self, filename: str) -> Path | None:
        if filename not in self._paths:
            path = Path(filename).resolve()
            self._paths[filename] = path if path.is_relative_to(self.root) else None
        return self._paths[filename]

    def global_trace(self, frame, event, arg):
        if event != "call":
            return None
        path = self._package_path(frame.f_code.co_filename)
        if path is None:
            return None
        lines = self.hit_lines.setdefault(path, set())

        def _local_trace(frame, event, arg):
            if event == "line":
                lines.add(frame.f_lineno)
            return _local_trace

        return _local_trace


def _executable_lines(file_path: Path) -> set[int]:
    executable = set(_find_executable_linenos(str(file_path)))
    if not executable:
        return set()

    try:
        source_lines = file_path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return executable

    return {
        lineno
        for lineno in executable
        if 0 <= lineno - 1 < len(source_lines) and PRAGMA_NOCOVER not in source_lines[lineno - 1]
    }


def _calculate_coverage(hit_lines: dict[Path, set[int]]) -> tuple[float, dict[Path, float]]:
    coverage_map: dict[Path, float] = {}
    executable_total = 0
    executed_total = 0
    for file_path in PACKAGE_ROOT.rglob("*.py"):
        executable = _executable_lines(file_path)
        if not executable:
            continue
        executed = hit_lines.get(file_path.resolve(), set()) & executable
        coverage_map[file_path] = len(executed) / len(executable) * 100
        executable_total += len(executable)
        executed_total += len(executed)

    overall = executed_total / executable_total * 100 if executable_total else 100.0
    return overall, coverage_map


def pytest_sessionstart(session: pytest.Session) -> None:
    # TestClient runs the app in a portal thread, so trace new threads too.
    tracer = PackageLineTracer(PACKAGE_ROOT)
    session.config._proxy_tracer = tracer
    sys.settrace(tracer.global_trace)
    threading.settrace(tracer.global_trace)


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    tracer = getattr(session.config, "_proxy_tracer", None)
    sys.settrace(None)
    threading.settrace(None)

    if tracer is None:
        return

    coverage_percent, coverage_map = _calculate_coverage(tracer.hit_lines)
    session.config._proxy_coverage = coverage_percent
    session.config._proxy_file_coverage = coverage_map

    if coverage_percent < COVERAGE_THRESHOLD and exitstatus == 0:
        session.exitstatus = pytest.ExitCode.TESTS_FAILED


def pytest_terminal_summary(terminalreporter, exitstatus: int, config: pytest.Config) -> None:
    coverage_percent = getattr(config, "_proxy_coverage", None)
    if coverage_percent is None:
        return

    terminalreporter.section("coverage summary")
    terminalreporter.write_line(f"Total coverage across summarizer_proxy/: {coverage_percent:.2f}%")
    terminalreporter.write_line(f"Required threshold: {COVERAGE_THRESHOLD:.0f}%")

    coverage_map = getattr(config, "_proxy_file_coverage", {})
    if coverage_map:
        terminalreporter.write_sep("-", "File coverage breakdown")
        for file_path in sorted(coverage_map):
            terminalreporter.write_line(f"{file_path.relative_to(PROJECT_ROOT)}: {coverage_map[file_path]:.2f}%")
