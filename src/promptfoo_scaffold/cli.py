import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .assertions import effective_assertions
from .checks import check_config
from .errors import PromptSyntaxError, ScaffoldError, UnresolvedPlaceholderError
from .references import ReferenceResolver, find_references, load_root_config, load_scaffold
from .schemas import ResolvedUseCase
from .settings import config_path, default_providers
from .templates import render


def select_use_cases(use_cases: list[ResolvedUseCase], selector: Optional[str]) -> list[ResolvedUseCase]:
    if selector is None:
        return use_cases
    if selector.isdigit():
        picked = [uc for uc in use_cases if uc.index == int(selector)]
    else:
        picked = [uc for uc in use_cases if uc.name.lower() == selector.lower()]
    if not picked:
        raise ScaffoldError(f"no use case matches {selector!r}")
    return picked


def cmd_check(args: argparse.Namespace) -> int:
    report = check_config(args.config)

    for issue in report.issues:
        where = " ".join(x for x in (issue.use_case and f"[{issue.use_case}]", issue.location) if x)
        print(f"[check] {issue.severity.upper()} {issue.code} {where}: {issue.message}")

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(report.model_dump(), ensure_ascii=False, indent=2), encoding="utf-8")

    print(json.dumps(report.summary, ensure_ascii=False, indent=2))
    if report.errors or (args.strict and report.warnings):
        return 1
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    use_cases = select_use_cases(load_scaffold(args.config, default_providers()), args.use_case)
    failures = 0
    for uc in use_cases:
        for prompt in uc.prompts:
            for test in uc.tests:
                print(f"=== [{uc.name}] {prompt.label} :: {test.description or '(no description)'}")
                try:
                    print(render(prompt, uc.vars_for(test)))
                except (UnresolvedPlaceholderError, PromptSyntaxError) as e:
                    failures += 1
                    print(f"[render] {e}", file=sys.stderr)
                print()
    return 1 if failures else 0


def cmd_show(args: argparse.Namespace) -> int:
    use_cases = select_use_cases(load_scaffold(args.config, default_providers()), args.use_case)
    out = []
    for uc in use_cases:
        out.append(
            {
                "use_case": uc.name,
                "providers": [p.id for p in uc.providers],
                "tests": [
                    {
                        "description": t.description,
                        "vars": uc.vars_for(t),
                        "assert": [a.model_dump(exclude_none=True) for a in effective_assertions(uc, t)],
                    }
                    for t in uc.tests
                ],
            }
        )
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


def cmd_refs(args: argparse.Namespace) -> int:
    root = load_root_config(args.config)
    resolver = ReferenceResolver(root.base_dir)
    missing = 0
    for uc in root.use_cases:
        for ref in find_references(uc.model_dump(by_alias=True)):
            ok = resolver.exists(ref)
            missing += 0 if ok else 1
            print(f"{'ok     ' if ok else 'MISSING'} {ref}")
    return 1 if missing else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptfoo-scaffold",
        description="Load and check a promptfoo config scaffold without calling any provider",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add(name: str, help: str, func) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help)
        p.add_argument("-c", "--config", type=Path, default=None, help="root config (default: $PROMPTFOO_CONFIG or promptfooconfig.yaml)")
        p.set_defaults(func=func)
        return p

    p = add("check", "report authoring errors", cmd_check)
    p.add_argument("--out", help="write the full JSON report here")
    p.add_argument("--strict", action="store_true", help="fail on warnings too")

    p = add("render", "print every rendered prompt per test case", cmd_render)
    p.add_argument("--use-case", help="description or index of one use case")

    p = add("show", "print the effective assertions per test case", cmd_show)
    p.add_argument("--use-case", help="description or index of one use case")

    add("refs", "list file:// references and whether they resolve", cmd_refs)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    if args.config is None:
        args.config = config_path()
    try:
        return args.func(args)
    except ScaffoldError as e:
        print(f"[{args.command}] error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
