"""Authoring-error checks for a promptfoo scaffold.

Runs the same loading the engine would do and reports, without calling any
provider: broken file:// references, load errors, prompt placeholders a test
case does not supply, malformed assertions and unset provider credentials.
"""

from pathlib import Path
from typing import Optional

from .assertions import check_assertion, effective_assertions, uses_model_grading
from .errors import ConfigLoadError, MissingReferenceError, PromptSyntaxError
from .references import ReferenceResolver, find_references, load_root_config, resolve_use_case
from .schemas import CheckReport, Issue, ProviderRef, ResolvedUseCase
from .settings import default_grader, default_providers, missing_credentials
from .templates import extract_placeholders


def _test_label(i: int, description: str) -> str:
    return f"tests[{i}] ({description})" if description else f"tests[{i}]"


def _check_resolved(uc: ResolvedUseCase) -> list[Issue]:
    issues: list[Issue] = []

    def add(severity: str, code: str, message: str, location: Optional[str] = None) -> None:
        issues.append(Issue(severity=severity, code=code, message=message, use_case=uc.name, location=location))

    if not uc.prompts:
        add("error", "no-prompts", "use case declares no prompts")
    if not uc.tests:
        add("warning", "no-tests", "use case has no test cases")

    placeholders: list[tuple[str, list[str]]] = []
    for p in uc.prompts:
        try:
            placeholders.append((p.label, extract_placeholders(p.text, p.label)))
        except PromptSyntaxError as e:
            add("error", "template-syntax", str(e), p.label)
    used: set[str] = {name for _, names in placeholders for name in names}

    for i, spec in enumerate(uc.default_assert):
        for problem in check_assertion(spec):
            code = "unknown-assertion-type" if problem.startswith("unknown") else "bad-assertion"
            add("error", code, problem, f"defaultTest.assert[{i}]")

    for ti, test in enumerate(uc.tests):
        where = _test_label(ti, test.description)
        merged = uc.vars_for(test)
        for label, names in placeholders:
            missing = [n for n in names if n not in merged]
            if missing:
                add("error", "missing-var", f"{label} needs {', '.join(missing)}", where)
        unused = [k for k in test.vars if k not in used]
        if unused and uc.prompts:
            add("warning", "unused-var", f"no prompt uses {', '.join(unused)}", where)
        for ai, spec in enumerate(test.assert_):
            for problem in check_assertion(spec):
                code = "unknown-assertion-type" if problem.startswith("unknown") else "bad-assertion"
                add("error", code, problem, f"{where}.assert[{ai}]")

    providers = list(uc.providers)
    if any(uses_model_grading(effective_assertions(uc, t)) for t in uc.tests) or (
        not uc.tests and uses_model_grading(uc.default_assert)
    ):
        providers.append(uc.grader or default_grader())
    seen: set[str] = set()
    for provider in providers:
        if provider.id in seen:
            continue
        seen.add(provider.id)
        names = missing_credentials(provider.id)
        if names:
            add("warning", "missing-credential", f"{provider.id} needs one of {', '.join(names)}", "providers")

    return issues


def check_config(path: Path, providers: Optional[list[ProviderRef]] = None) -> CheckReport:
    path = Path(path)
    report = CheckReport(config_path=str(path))
    totals = {"use_cases": 0, "prompts": 0, "test_cases": 0, "assertions": 0}

    try:
        root = load_root_config(path)
    except ConfigLoadError as e:
        code = "missing-reference" if isinstance(e, MissingReferenceError) else "load-error"
        report.issues.append(Issue(severity="error", code=code, message=str(e)))
        report.summary = _summary(report, totals)
        return report

    resolver = ReferenceResolver(root.base_dir)
    fallback = providers if providers is not None else default_providers()

    for index, use_case in enumerate(root.use_cases):
        totals["use_cases"] += 1
        name = use_case.description or f"use-case-{index}"
        raw = use_case.model_dump(by_alias=True)
        missing = [ref for ref in find_references(raw) if not resolver.exists(ref)]
        for ref in missing:
            report.issues.append(
                Issue(severity="error", code="missing-reference", message=f"{ref} does not resolve", use_case=name)
            )
        if missing:
            continue
        try:
            uc = resolve_use_case(use_case, index, resolver, fallback)
        except MissingReferenceError as e:
            report.issues.append(Issue(severity="error", code="missing-reference", message=str(e), use_case=name))
            continue
        except ConfigLoadError as e:
            report.issues.append(Issue(severity="error", code="load-error", message=str(e), use_case=name))
            continue

        totals["prompts"] += len(uc.prompts)
        totals["test_cases"] += len(uc.tests)
        totals["assertions"] += len(uc.default_assert) + sum(len(t.assert_) for t in uc.tests)
        report.issues.extend(_check_resolved(uc))

    report.summary = _summary(report, totals)
    return report


def _summary(report: CheckReport, totals: dict) -> dict:
    return {
        **totals,
        "errors": len(report.errors),
        "warnings": len(report.warnings),
        "ok": report.ok,
    }
