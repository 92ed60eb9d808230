from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .templates import extract_placeholders


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        return [value]
    return value


class AssertionSpec(BaseModel):
    # engine keys such as weight or metric are kept as extras
    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    value: Any = None
    threshold: Optional[float] = None
    description: Optional[str] = None


class TestCase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    description: str = ""
    vars: Dict[str, str] = Field(default_factory=dict)
    assert_: List[AssertionSpec] = Field(default_factory=list, alias="assert")

    @field_validator("vars", mode="before")
    @classmethod
    def _stringify_vars(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        out = {}
        for k, v in value.items():
            if isinstance(v, (dict, list)):
                raise ValueError(f"var {k!r} must be a plain value, got {type(v).__name__}")
            out[str(k)] = "" if v is None else (str(v).lower() if isinstance(v, bool) else str(v))
        return out


class PromptTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Optional[str] = None
    text: str

    @property
    def placeholders(self) -> List[str]:
        return extract_placeholders(self.text, self.label)

    @property
    def label(self) -> str:
        if self.path:
            return self.path
        first = self.text.strip().splitlines()[0] if self.text.strip() else ""
        return f"inline: {first[:40]}"


class ProviderRef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    config: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"id": value}
        return value


class DefaultTest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    # raw entries: inline assertion mappings or file:// references
    assert_: List[Union[str, Dict[str, Any]]] = Field(default_factory=list, alias="assert")
    vars: Dict[str, Any] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("assert_", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        return _as_list(value)


class UseCaseConfig(BaseModel):
    """One use case as written in the root config, before references are resolved."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    description: str = ""
    prompts: List[str] = Field(default_factory=list)
    providers: List[ProviderRef] = Field(default_factory=list)
    tests: List[Union[str, Dict[str, Any]]] = Field(default_factory=list)
    default_test: DefaultTest = Field(default_factory=DefaultTest, alias="defaultTest")

    @field_validator("prompts", "providers", "tests", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        return _as_list(value)


class RootConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    use_cases: List[UseCaseConfig] = Field(default_factory=list)

    @property
    def base_dir(self) -> Path:
        return self.path.parent


class ResolvedUseCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    description: str = ""
    prompts: List[PromptTemplate] = Field(default_factory=list)
    providers: List[ProviderRef] = Field(default_factory=list)
    tests: List[TestCase] = Field(default_factory=list)
    default_assert: List[AssertionSpec] = Field(default_factory=list)
    default_vars: Dict[str, str] = Field(default_factory=dict)
    grader: Optional[ProviderRef] = None

    @property
    def name(self) -> str:
        return self.description or f"use-case-{self.index}"

    def vars_for(self, test: TestCase) -> Dict[str, str]:
        return {**self.default_vars, **test.vars}


class Issue(BaseModel):
    severity: Literal["error", "warning"]
    code: str
    message: str
    use_case: Optional[str] = None
    location: Optional[str] = None


class CheckReport(BaseModel):
    config_path: str
    issues: List[Issue] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=dict)

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def ok(self) -> bool:
        return not self.errors
