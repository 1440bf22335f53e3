"""
Exception hierarchy for StackIdeator.

Generation and persistence failures are caught by the SessionController and
turned into a failed slot; stream failures are caught per chat turn.
"""


class StackIdeatorError(Exception):
    """Base exception for all StackIdeator errors."""
    pass


class GenerationFailure(StackIdeatorError):
    """The backend was unreachable or returned an empty or malformed payload."""
    pass


class StreamFailure(StackIdeatorError):
    """A chat stream aborted mid-flight."""
    pass


class PersistenceFailure(StackIdeatorError):
    """The saved-projects blob could not be serialized, deserialized or written."""
    pass


class TurnInFlightError(StackIdeatorError):
    """A chat turn was started while another turn of the same session is streaming."""
    pass
