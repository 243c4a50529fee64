"""
Domain Exceptions

Configuration errors are raised to the caller of the triggering operation.
Per-sample errors (ProviderError and subclasses) are recovered by the runner.
"""


class OneWordError(Exception):
    """Base class for all oneword-core errors"""
    pass


class InvalidRangeError(OneWordError, ValueError):
    """A sweep axis has malformed bounds or step count"""
    pass


class InvalidTransitionError(OneWordError):
    """An experiment was moved to a status not reachable from its current one"""

    def __init__(self, experiment_id: str, current: str, requested: str):
        self.experiment_id = experiment_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Experiment {experiment_id} cannot move from '{current}' to '{requested}'"
        )


class AlreadyRunningError(OneWordError):
    """An experiment with the same id is already running"""

    def __init__(self, experiment_id: str):
        self.experiment_id = experiment_id
        super().__init__(f"Experiment {experiment_id} is already running")


class NotRunningError(OneWordError):
    """The experiment id is not known to the runner"""

    def __init__(self, experiment_id: str):
        self.experiment_id = experiment_id
        super().__init__(f"Experiment {experiment_id} not found or not running")


class MissingCredentialsError(OneWordError):
    """One or more providers required by the selected models have no API key"""

    def __init__(self, provider_ids: list[str]):
        self.provider_ids = list(provider_ids)
        super().__init__(f"Missing API keys for: {', '.join(self.provider_ids)}")


class UnknownProviderError(OneWordError):
    """The provider id is not registered"""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        super().__init__(f"Unknown provider: {provider_id}")


class ProviderError(OneWordError):
    """A single provider call failed"""

    def __init__(self, provider_id: str, message: str):
        self.provider_id = provider_id
        super().__init__(message)


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the request timeout"""

    def __init__(self, provider_id: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            provider_id, f"{provider_id} request timed out after {timeout_seconds}s"
        )


class EmptyResponseError(ProviderError):
    """The provider answered, but no word could be extracted"""

    def __init__(self, provider_id: str, raw: str | None = None):
        self.raw = raw
        super().__init__(provider_id, f"No valid word in {provider_id} response")


class ProviderAPIError(ProviderError):
    """The provider returned an HTTP error or the connection failed"""

    def __init__(self, provider_id: str, message: str, status_code: int | None = None):
        self.status_code = status_code
        prefix = f"{provider_id} API error"
        if status_code is not None:
            prefix = f"{prefix}: {status_code}"
        super().__init__(provider_id, f"{prefix} {message}".strip())
