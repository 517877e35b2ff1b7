"""
Analytics Exceptions
"""

from typing import Optional


class InsightEngineError(Exception):
    """Base class for errors raised by the insight engine"""


class EmptyQueryError(InsightEngineError, ValueError):
    """The caller submitted a blank question"""


class InsightNotFoundError(InsightEngineError, LookupError):
    """No insight with the given id belongs to the caller"""


class LLMError(InsightEngineError):
    """The language-model path could not produce an answer"""


class LLMNotConfiguredError(LLMError):
    """No credential is configured for the language-model endpoint"""


class LLMUnavailableError(LLMError):
    """Transport failure, timeout or non-2xx response"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LLMResponseError(LLMError):
    """The completion content was not the expected JSON document"""
