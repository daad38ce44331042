"""Scripted test runs that emit events with tracing on and report as JSON."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from assistant_core.core.exceptions import AssistantError
from assistant_core.debug.tracer import DebugTracer
from assistant_core.modules.dispatcher import Dispatcher
from assistant_core.utils.logging import get_logger

logger = get_logger("debug.suite")

TEST_START = "test_start"
TEST_ASSERT = "test_assert"
TEST_END = "test_end"


@dataclass
class DebugTestCase:
    """One scripted case; ``run`` maps the input to the actual output."""

    name: str
    input: str
    expected: str
    run: Callable[[str], str] | None = None


class DebugTestSuite:
    """Runs test cases through the dispatcher and reports for LLM review."""

    def __init__(
        self,
        name: str,
        dispatcher: Dispatcher,
        tracer: DebugTracer,
        setup: Callable[[], None] | None = None,
        teardown: Callable[[], None] | None = None,
    ) -> None:
        self.name = name
        self.tests: list[DebugTestCase] = []
        self._dispatcher = dispatcher
        self._tracer = tracer
        self._setup = setup
        self._teardown = teardown

    def add_test(self, case: DebugTestCase) -> None:
        self.tests.append(case)

    def run(self) -> str:
        """Run every case and return the JSON report.

        Tracing is enabled for the duration of the run and restored to its
        previous state afterwards.

        Raises:
            AssistantError: If the setup callable fails.
        """
        was_enabled = self._tracer.enabled
        self._tracer.enable()
        try:
            if self._setup is not None:
                try:
                    self._setup()
                except Exception as e:
                    raise AssistantError(f"Setup failed: {e}", subsystem="debug") from e

            results = [self._run_case(case) for case in self.tests]

            if self._teardown is not None:
                try:
                    self._teardown()
                except Exception as e:
                    logger.warning("Teardown of suite %s failed: %s", self.name, e)
        finally:
            if not was_enabled:
                self._tracer.disable()

        report = {
            "suite": self.name,
            "tests": results,
            "debug_log": [event.model_dump(mode="json") for event in self._tracer.get_log()],
            "timestamp": datetime.now(UTC).isoformat(),
        }
        return json.dumps(report, indent=2, default=str)

    def _run_case(self, case: DebugTestCase) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": case.name,
            "input": case.input,
            "expected": case.expected,
        }

        self._dispatcher.emit(TEST_START, {"test_name": case.name})

        actual = ""
        if case.run is not None:
            try:
                actual = str(case.run(case.input))
            except Exception as e:
                logger.debug("Test case %s raised: %s", case.name, e)
                result["error"] = str(e)

        ctx = self._dispatcher.emit(
            TEST_ASSERT,
            {"assertion_name": case.name, "expected": case.expected, "actual": actual},
        )
        self._dispatcher.emit(TEST_END, {"test_name": case.name})

        result["actual"] = actual
        result["passed"] = "error" not in result and actual == case.expected
        if ctx is not None and ctx.debug is not None:
            result["assertions"] = [a.model_dump(mode="json") for a in ctx.debug.assertions]
        return result
