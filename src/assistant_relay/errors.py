class RelayError(Exception):
    """Base class for failures that end a relay request."""

    status = "error"


class CredentialNotFoundError(RelayError):
    def __init__(self, api_key_name: str):
        super().__init__(f"API key not found: {api_key_name}")
        self.api_key_name = api_key_name


class RunTimeoutError(RelayError):
    status = "timeout"

    def __init__(self, run_id: str, deadline_seconds: float):
        super().__init__(f"Run {run_id} did not finish within {deadline_seconds:g}s")
        self.run_id = run_id
        self.deadline_seconds = deadline_seconds


class ToolBatchTimeoutError(RelayError):
    def __init__(self, run_id: str, timeout_seconds: float):
        super().__init__(f"Tool calls for run {run_id} did not finish within {timeout_seconds:g}s")
        self.run_id = run_id
        self.timeout_seconds = timeout_seconds


class ToolOutputSubmissionError(RelayError):
    def __init__(self, run_id: str, cause: Exception):
        super().__init__(f"Failed to submit tool outputs for run {run_id}: {cause}")
        self.run_id = run_id
