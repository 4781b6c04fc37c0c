"""Error taxonomy for the onboarding assistant.

Only ``InitializationFailure`` is fatal. Everything else is caught at the
request boundary and turned into a structured JSON error.
"""


class OnboardingError(Exception):
    """Base class for all assistant errors."""


class InitializationFailure(OnboardingError):
    """Corpus unreadable or index construction failed during startup."""


class UninitializedIndex(OnboardingError):
    """Retrieval attempted before the corpus has been embedded and indexed."""


class UpstreamFailure(OnboardingError):
    """The embedding or completion service returned an error."""
