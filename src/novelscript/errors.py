class NovelScriptError(RuntimeError):
    """Base for errors reported to the user by the CLI and TUI."""


class ConfigError(NovelScriptError):
    pass


class ScriptFileError(NovelScriptError):
    pass
