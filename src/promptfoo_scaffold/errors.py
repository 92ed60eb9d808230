class ScaffoldError(Exception):
    """Base class for errors raised while loading or checking a scaffold."""
    pass


class ConfigLoadError(ScaffoldError):
    """A config or referenced file could not be read, parsed or validated."""

    def __init__(self, message: str, path=None) -> None:
        super().__init__(message)
        self.path = path


class MissingReferenceError(ConfigLoadError):
    """A file:// reference points at nothing."""
    pass


class UnresolvedPlaceholderError(ScaffoldError):
    """A prompt was rendered without values for some of its placeholders."""

    def __init__(self, names: list[str], source: str | None = None) -> None:
        where = f" in {source}" if source else ""
        super().__init__(f"unresolved placeholders{where}: {', '.join(names)}")
        self.names = names
        self.source = source


class PromptSyntaxError(ScaffoldError):
    """A prompt template is not valid Nunjucks/Jinja syntax."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source
