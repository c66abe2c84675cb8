"""Pipeline exception hierarchy.

Stage-level exceptions (StageExecutionError and subclasses, SynthesisError)
never reach the caller of an engine: they are converted into ErrorEntry
records at the stage boundary. Definition errors describe a malformed
pipeline and are raised to the caller before any stage runs.
"""


class ContextRailError(Exception):
    """Base exception for all contextrail errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StageExecutionError(ContextRailError):
    """Raised when a stage cannot produce a usable result."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage


class StageTimeoutError(StageExecutionError):
    """Raised when a stage misses its deadline."""

    def __init__(self, stage: str, timeout_ms: int) -> None:
        super().__init__(stage, f"Stage '{stage}' timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class InvalidStageOutputError(StageExecutionError):
    """Raised when a stage returns a value of the wrong type."""

    def __init__(self, stage: str, expected: str, value: object) -> None:
        super().__init__(
            stage,
            f"Stage '{stage}' returned {type(value).__name__} ({value!r}), expected {expected}",
        )


class SlotOverwriteError(StageExecutionError):
    """Raised when a stage replaces a populated slot it does not own."""

    def __init__(self, stage: str, slot: str) -> None:
        super().__init__(
            stage,
            f"Stage '{stage}' overwrote populated slot '{slot}' without declaring it",
        )
        self.slot = slot


class SynthesisError(ContextRailError):
    """Raised when the synthesizer cannot produce a profile."""


class PipelineDefinitionError(ContextRailError):
    """Raised when a pipeline definition is malformed."""


class DuplicateStageError(PipelineDefinitionError):
    """Raised when two stages in one run share a name."""

    def __init__(self, stage: str) -> None:
        super().__init__(f"Stage '{stage}' is registered more than once")
        self.stage = stage


class UnknownStageError(PipelineDefinitionError):
    """Raised when a definition refers to a stage that is not registered."""

    def __init__(self, stage: str) -> None:
        super().__init__(f"Stage '{stage}' not found in current configuration")
        self.stage = stage


class UnknownPresetError(PipelineDefinitionError):
    """Raised when a concurrent preset name is not configured."""

    def __init__(self, preset: str) -> None:
        super().__init__(f"Pipeline preset '{preset}' is not configured")
        self.preset = preset


def describe_exception(exc: BaseException) -> str:
    """Text stored in an error entry for any raised value."""
    text = str(exc)
    if text:
        return text
    return repr(exc) if exc.args else type(exc).__name__
