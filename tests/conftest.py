import io
import os
from collections.abc import Callable
from typing import Any

import pytest

from flyux.flyux_interpreter import run_source

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


RunResult = tuple[str | None, str]


@pytest.fixture
def run() -> Callable[..., RunResult]:
    """Run a program and return (main's result, captured stdout)."""

    def _run(source: str, stdin: str = "") -> RunResult:
        out = io.StringIO()
        result = run_source(source, stdin=io.StringIO(stdin), stdout=out)
        return result, out.getvalue()

    return _run


@pytest.fixture
def main_body(run: Callable[..., RunResult]) -> Callable[..., str | None]:
    """Wrap statements in `F>main(){ ... }` and return main's result."""

    def _main(body: str) -> str | None:
        result, _ = run(f"F>main(){{ {body} }}")
        return result

    return _main
