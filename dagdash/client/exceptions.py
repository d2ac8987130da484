"""
Airflow client exceptions
"""


class DagdashClientError(Exception):
    """Base exception for all Airflow client errors"""

    pass


class AirflowAPIError(DagdashClientError):
    """Raised when an API request fails"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AirflowNotFoundError(AirflowAPIError):
    """Raised when a resource is not found (404)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class AirflowAuthenticationError(AirflowAPIError):
    """Raised when authentication fails (401)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=401)


class TokenCommandError(DagdashClientError):
    """Raised when a token helper command fails"""

    pass
