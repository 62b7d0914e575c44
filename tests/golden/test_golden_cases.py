from __future__ import annotations

import pytest

from runner import GOLDEN_ROOT, GoldenTest, discover_tests, execute_run


GOLDEN_TESTS = discover_tests()


def _case_id(test: GoldenTest) -> str:
    return test.source_path.relative_to(GOLDEN_ROOT).as_posix()


def test_golden_cases_are_discovered() -> None:
    assert GOLDEN_TESTS


@pytest.mark.parametrize("golden_test", GOLDEN_TESTS, ids=_case_id)
def test_golden_case(golden_test: GoldenTest) -> None:
    failures: list[str] = []
    for run in golden_test.runs:
        result = execute_run(golden_test, run)
        if not result.ok:
            failures.append(f"run '{run.name}':")
            failures.extend(f"  - {detail}" for detail in result.details)

    assert not failures, "\n".join(failures)
