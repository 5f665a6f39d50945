"""
Custom exceptions for the gateway client
"""

from typing import Dict, Optional


class FaasCliException(Exception):
    """Base exception for gateway client operations"""
    pass


class InvalidURL(FaasCliException):
    """Exception raised when the gateway address cannot be parsed"""

    def __init__(self, gateway_url: str):
        self.gateway_url = gateway_url
        super().__init__(f"invalid gateway URL: {gateway_url}")


class AuthenticationFailure(FaasCliException):
    """Exception raised when credentials cannot be attached to a request"""
    pass


class TransportFailure(FaasCliException):
    """Exception raised on network-level failures"""
    pass


class DeadlineExceeded(TransportFailure):
    """Exception raised when a request outlives its caller's deadline"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"request deadline exceeded after {timeout}s")


class UnexpectedStatus(FaasCliException):
    """Exception raised when the gateway answers with an unexpected status code"""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"server returned unexpected status code: {status_code} - {body}")


class NoSuchFunction(FaasCliException):
    """Exception raised when a single-function lookup returns 404"""

    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"no such function: {function_name}")


class InvalidResponse(FaasCliException):
    """Exception raised when a gateway response body cannot be decoded"""
    pass


class PartialDeployFailure(FaasCliException):
    """Exception raised after a batch deploy in which some functions failed.

    Carries the status code of every failed function so callers can report
    the complete picture rather than only the first failure.
    """

    def __init__(self, failures: Dict[str, int], message: Optional[str] = None):
        self.failures = dict(failures)
        if message is None:
            message = "\n".join(
                f"Function '{name}' failed to deploy with status code: {code}"
                for name, code in self.failures.items()
            )
        super().__init__(message)


class StackFileError(FaasCliException):
    """Exception raised when a stack file cannot be read or validated"""
    pass
