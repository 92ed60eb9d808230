"""Loading a promptfoo scaffold and resolving its file:// references.

A root config is either a single use-case mapping or a YAML list of them.
Every reference is resolved against the directory holding the root config.
Referenced lists are spliced in place, so an assertion set or a test-input
file may itself reference further files. Loaded files are parsed once per
resolver and every caller receives its own copy.
"""

import copy
import glob
import json
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from pydantic import ValidationError

from .errors import ConfigLoadError, MissingReferenceError
from .schemas import (
    AssertionSpec,
    PromptTemplate,
    ProviderRef,
    ResolvedUseCase,
    RootConfig,
    TestCase,
    UseCaseConfig,
)

FILE_PREFIX = "file://"
YAML_SUFFIXES = {".yaml", ".yml"}


def is_reference(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(FILE_PREFIX)


def find_references(tree: Any) -> list[str]:
    """Every file:// string in a raw config tree, in document order."""
    found: list[str] = []
    if is_reference(tree):
        found.append(tree)
    elif isinstance(tree, dict):
        for v in tree.values():
            found.extend(find_references(v))
    elif isinstance(tree, list):
        for v in tree:
            found.extend(find_references(v))
    return found


def _read_yaml(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise MissingReferenceError(f"config not found: {path}", path)
    except OSError as e:
        raise ConfigLoadError(f"cannot read {path}: {e}", path)
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"malformed YAML in {path}: {e}", path)


def load_root_config(path: Path) -> RootConfig:
    path = Path(path)
    data = _read_yaml(path)
    if isinstance(data, dict):
        entries = [data]
    elif isinstance(data, list):
        entries = data
    else:
        raise ConfigLoadError(f"{path}: expected a use case mapping or a list of them", path)

    use_cases: list[UseCaseConfig] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigLoadError(f"{path}: use case #{i} is not a mapping", path)
        try:
            use_cases.append(UseCaseConfig.model_validate(entry))
        except ValidationError as e:
            raise ConfigLoadError(f"{path}: use case #{i}: {e}", path)
    return RootConfig(path=path, use_cases=use_cases)


class ReferenceResolver:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        self._cache: dict[Path, Any] = {}

    def display(self, path: Path) -> str:
        try:
            return path.relative_to(self.base_dir.resolve()).as_posix()
        except ValueError:
            return str(path)

    def expand(self, ref: str) -> list[Path]:
        """Files a reference points at; globs expand in sorted order."""
        target = ref[len(FILE_PREFIX):] if is_reference(ref) else ref
        full = Path(target)
        if not full.is_absolute():
            full = self.base_dir / full
        if any(ch in target for ch in "*?["):
            matches = sorted(Path(p).resolve() for p in glob.glob(str(full)) if Path(p).is_file())
            if not matches:
                raise MissingReferenceError(f"no files match {ref}", full)
            return matches
        if not full.is_file():
            raise MissingReferenceError(f"referenced file not found: {ref} ({full})", full)
        return [full.resolve()]

    def exists(self, ref: str) -> bool:
        try:
            self.expand(ref)
        except MissingReferenceError:
            return False
        return True

    def read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigLoadError(f"cannot read {path}: {e}", path)

    def _parse(self, path: Path) -> Any:
        text = self.read_text(path)
        suffix = path.suffix.lower()
        try:
            if suffix in YAML_SUFFIXES:
                return yaml.safe_load(text)
            if suffix == ".json":
                return json.loads(text)
            if suffix == ".jsonl":
                return [json.loads(line) for line in text.splitlines() if line.strip()]
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigLoadError(f"malformed {suffix[1:].upper()} in {path}: {e}", path)
        return text

    def load_file(self, path: Path) -> Any:
        path = Path(path).resolve()
        if path not in self._cache:
            self._cache[path] = self._parse(path)
        return copy.deepcopy(self._cache[path])

    def resolve_list(self, entries: Iterable[Any], _stack: tuple = ()) -> list[Any]:
        """Splice referenced files into a list of records, recursively."""
        out: list[Any] = []
        for entry in entries:
            if not is_reference(entry):
                out.append(entry)
                continue
            for path in self.expand(entry):
                if path in _stack:
                    chain = " -> ".join(self.display(p) for p in (*_stack, path))
                    raise ConfigLoadError(f"circular file reference: {chain}", path)
                content = self.load_file(path)
                if content is None:
                    continue
                if isinstance(content, dict):
                    content = [content]
                if not isinstance(content, list):
                    raise ConfigLoadError(f"{self.display(path)}: expected a list of records", path)
                out.extend(self.resolve_list(content, (*_stack, path)))
        return out

    def resolve_vars(self, vars: Any, where: str) -> dict:
        """Replace file:// var values by the file's text, whatever its suffix."""
        if vars is None:
            return {}
        if not isinstance(vars, dict):
            raise ConfigLoadError(f"{where}: vars must be a mapping")
        out = {}
        for k, v in vars.items():
            if is_reference(v):
                paths = self.expand(v)
                if len(paths) > 1:
                    names = ", ".join(self.display(p) for p in paths)
                    raise ConfigLoadError(f"{where}: var {k!r} must reference one file, {v} matches {names}")
                out[k] = self.read_text(paths[0])
            else:
                out[k] = v
        return out

    def resolve_prompts(self, entries: Iterable[str]) -> list[PromptTemplate]:
        prompts: list[PromptTemplate] = []
        for entry in entries:
            if not is_reference(entry):
                prompts.append(PromptTemplate(text=entry))
                continue
            for path in self.expand(entry):
                text = self.load_file(path)
                if not isinstance(text, str):
                    raise ConfigLoadError(f"{self.display(path)}: prompt files must be plain text", path)
                prompts.append(PromptTemplate(path=self.display(path), text=text))
        return prompts

    def resolve_assertions(self, entries: Iterable[Any], where: str) -> list[AssertionSpec]:
        specs: list[AssertionSpec] = []
        for i, record in enumerate(self.resolve_list(entries)):
            if not isinstance(record, dict):
                raise ConfigLoadError(f"{where}[{i}]: assertion must be a mapping, got {record!r}")
            try:
                specs.append(AssertionSpec.model_validate(record))
            except ValidationError as e:
                raise ConfigLoadError(f"{where}[{i}]: {e}")
        return specs

    def resolve_tests(self, entries: Iterable[Any]) -> list[TestCase]:
        tests: list[TestCase] = []
        for i, record in enumerate(self.resolve_list(entries)):
            where = f"tests[{i}]"
            if not isinstance(record, dict):
                raise ConfigLoadError(f"{where}: test case must be a mapping, got {record!r}")
            record = dict(record)
            record["vars"] = self.resolve_vars(record.get("vars"), where)
            asserts = record.pop("assert", None) or []
            if isinstance(asserts, (str, dict)):
                asserts = [asserts]
            try:
                tests.append(
                    TestCase.model_validate(
                        {**record, "assert": self.resolve_assertions(asserts, f"{where}.assert")}
                    )
                )
            except ValidationError as e:
                raise ConfigLoadError(f"{where}: {e}")
        return tests


def _grader(options: dict) -> Optional[ProviderRef]:
    provider = options.get("provider")
    if not provider:
        return None
    if isinstance(provider, dict) and "id" not in provider:
        # {text: ..., embedding: ...} style; the text grader is the relevant one
        provider = provider.get("text")
        if not provider:
            return None
    return ProviderRef.model_validate(provider)


def resolve_use_case(
    use_case: UseCaseConfig,
    index: int,
    resolver: ReferenceResolver,
    default_providers: Optional[list[ProviderRef]] = None,
) -> ResolvedUseCase:
    default = use_case.default_test
    try:
        default_vars = TestCase.model_validate(
            {"vars": resolver.resolve_vars(default.vars, "defaultTest")}
        ).vars
        grader = _grader(default.options)
    except ValidationError as e:
        raise ConfigLoadError(f"defaultTest: {e}")
    return ResolvedUseCase(
        index=index,
        description=use_case.description,
        prompts=resolver.resolve_prompts(use_case.prompts),
        providers=use_case.providers or list(default_providers or []),
        tests=resolver.resolve_tests(use_case.tests),
        default_assert=resolver.resolve_assertions(default.assert_, "defaultTest.assert"),
        default_vars=default_vars,
        grader=grader,
    )


def load_scaffold(
    path: Path, default_providers: Optional[list[ProviderRef]] = None
) -> list[ResolvedUseCase]:
    root = load_root_config(path)
    resolver = ReferenceResolver(root.base_dir)
    return [
        resolve_use_case(uc, i, resolver, default_providers)
        for i, uc in enumerate(root.use_cases)
    ]
