from typing import Any, List

from .schemas import AssertionSpec, ResolvedUseCase, TestCase


RECOGNIZED_TYPES = [
    "contains",
    "not-contains",
    "contains-any",
    "javascript",
    "model-graded-closedqa",
    "llm-rubric",
    "cost",
]

MODEL_GRADED_TYPES = {"model-graded-closedqa", "llm-rubric"}

TEXT_VALUE_TYPES = {"contains", "not-contains", "javascript", "model-graded-closedqa", "llm-rubric"}


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def check_assertion(spec: AssertionSpec) -> List[str]:
    """Problems with one assertion record; empty when it is well formed."""
    problems: List[str] = []
    t = spec.type

    if t not in RECOGNIZED_TYPES:
        return [f"unknown assertion type {t!r}"]

    if t in TEXT_VALUE_TYPES:
        if not _is_text(spec.value):
            problems.append(f"{t} needs a non-empty string value")
    elif t == "contains-any":
        v = spec.value
        if isinstance(v, str):
            ok = any(part.strip() for part in v.split(","))
        else:
            ok = isinstance(v, list) and len(v) > 0 and all(_is_text(x) for x in v)
        if not ok:
            problems.append("contains-any needs a non-empty list of strings")
    elif t == "cost":
        if spec.threshold is None:
            problems.append("cost needs a threshold (maximum cost)")
        elif spec.threshold <= 0:
            problems.append("cost threshold must be positive")

    if t in MODEL_GRADED_TYPES and spec.threshold is not None:
        if not 0 <= spec.threshold <= 1:
            problems.append(f"{t} threshold must be between 0 and 1")

    return problems


def effective_assertions(use_case: ResolvedUseCase, test: TestCase) -> List[AssertionSpec]:
    """defaultTest.assert entries followed by the test case's own, in order."""
    return [*use_case.default_assert, *test.assert_]


def uses_model_grading(specs: List[AssertionSpec]) -> bool:
    return any(s.type in MODEL_GRADED_TYPES for s in specs)
