from __future__ import annotations

import textwrap
from pathlib import Path

import pytest


def write_tree(root: Path, files: dict[str, str]) -> Path:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return root


TRANSLATION_FILES = {
    "promptfooconfig.yaml": """
        - description: translation
          prompts:
            - file://prompts/translation.txt
          providers:
            - echo
          tests: file://test-inputs/translation.yaml
          defaultTest:
            assert:
              - file://evals/common.yaml
        - description: greeting
          prompts:
            - "Say hi to {{name}}"
          providers:
            - echo
          tests:
            - description: bob
              vars:
                name: Bob
          defaultTest:
            assert:
              - file://evals/common.yaml
    """,
    "prompts/translation.txt": """
        Translate from {{inputLanguage}} to {{outputLanguage}}:
        {{inputText}}
    """,
    "test-inputs/translation.yaml": """
        - description: Klingon greeting
          vars:
            inputLanguage: English
            outputLanguage: Klingon
            inputText: Hello
        - description: French
          vars:
            inputLanguage: English
            outputLanguage: French
            inputText: Good morning
          assert:
            - type: contains
              value: Bonjour
    """,
    "evals/common.yaml": """
        - type: not-contains
          value: As an AI
          description: no disclaimers
        - type: cost
          threshold: 0.01
          description: cheap
    """,
}


@pytest.fixture
def scaffold(tmp_path: Path) -> Path:
    write_tree(tmp_path, TRANSLATION_FILES)
    return tmp_path / "promptfooconfig.yaml"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("PROMPTFOO_CONFIG", "PROMPTFOO_PROVIDERS", "PROMPTFOO_GRADER", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
