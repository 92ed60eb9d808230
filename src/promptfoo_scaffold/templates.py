"""Prompt placeholders, parsed and rendered with Jinja2.

promptfoo renders prompts with Nunjucks, which shares Jinja syntax, so
filters (`{{ text | trim }}`), attribute access (`{{ user.name }}`) and
`{% ... %}` blocks are all understood here. A placeholder is a top-level
variable the template reads without defining it.
"""

from typing import Any, Mapping

from jinja2 import DebugUndefined, Environment, StrictUndefined, TemplateSyntaxError, UndefinedError, meta, nodes

from .errors import PromptSyntaxError, UnresolvedPlaceholderError


def _environment(undefined) -> Environment:
    return Environment(
        # prompts are not HTML
        autoescape=False,
        keep_trailing_newline=True,
        undefined=undefined,
    )


_STRICT_ENV = _environment(StrictUndefined)
_LENIENT_ENV = _environment(DebugUndefined)


def _text_of(template: Any) -> str:
    return template if isinstance(template, str) else template.text


def _source_of(template: Any) -> str | None:
    return None if isinstance(template, str) else template.label


def _parse(text: str, source: str | None = None) -> nodes.Template:
    try:
        return _STRICT_ENV.parse(text)
    except TemplateSyntaxError as e:
        raise PromptSyntaxError(f"{source or 'prompt'} line {e.lineno}: {e.message}", source)


def extract_placeholders(text: str, source: str | None = None) -> list[str]:
    """Placeholder names in order of first appearance."""
    ast = _parse(text, source)
    undeclared = meta.find_undeclared_variables(ast)
    seen: list[str] = []
    for node in ast.find_all(nodes.Name):
        if node.name in undeclared and node.name not in seen:
            seen.append(node.name)
    return seen


def missing_vars(template: Any, vars: Mapping[str, str]) -> list[str]:
    names = extract_placeholders(_text_of(template), _source_of(template))
    return [n for n in names if n not in vars]


def unused_vars(template: Any, vars: Mapping[str, str]) -> list[str]:
    used = set(extract_placeholders(_text_of(template), _source_of(template)))
    return [k for k in vars if k not in used]


def render(template: Any, vars: Mapping[str, str], strict: bool = True) -> str:
    """Render a prompt template with a test case's vars.

    With strict=False an undefined variable is written back as its
    `{{ name }}` token instead of failing.
    """
    text, source = _text_of(template), _source_of(template)
    env = _STRICT_ENV if strict else _LENIENT_ENV
    compiled = env.from_string(_parse(text, source))
    try:
        return compiled.render(dict(vars))
    except UndefinedError as e:
        missing = [n for n in extract_placeholders(text, source) if n not in vars]
        raise UnresolvedPlaceholderError(missing or [str(e)], source)
