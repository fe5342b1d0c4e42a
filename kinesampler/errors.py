"""
Exception types.

Two failure classes exist:
    - ConfigurationError: the generator is misconfigured (missing
      collaborator, unresolvable particle identity). Fatal for the run.
    - KineGenError: a single event could not be given kinematics within the
      iteration budget. Only the current event is lost.
"""


class KinesamplerError(Exception):
    """Base class for all package errors."""


class ConfigurationError(KinesamplerError, ValueError):
    """Unrecoverable setup problem."""


class KineGenError(KinesamplerError):
    """Kinematics generation failed for the current event."""

    def __init__(self, message: str, iterations: int = 0):
        super().__init__(message)
        self.iterations = iterations
