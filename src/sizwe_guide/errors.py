"""Exception hierarchy for Sizwe Guide."""


class SizweGuideError(Exception):
    """Base class for all application errors."""


class ConfigurationError(SizweGuideError):
    """Raised when required settings (e.g. API keys) are missing."""


class InvalidTransitionError(SizweGuideError):
    """Raised when an export job is moved to a state it cannot reach."""


class ExportError(SizweGuideError):
    """Base class for failures inside the video export pipeline."""


class FetchError(ExportError):
    """Narration resource could not be retrieved."""


class DecodeError(ExportError):
    """Narration bytes are not a supported or intact audio encoding."""


class StreamCompositionError(ExportError):
    """Video frame or audio track was unavailable for muxing."""


class RecordingError(ExportError):
    """Container encoder was unavailable or failed while writing."""


class UpstreamError(SizweGuideError):
    """The AI gateway call failed."""


class UpstreamParseError(UpstreamError):
    """The AI reply did not contain valid, extractable JSON."""
