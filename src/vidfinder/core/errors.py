"""
errors.py
=========
Taxonomia de erros da extração.

Todos os erros são capturados na fronteira do orquestrador (extractor.py) e
convertidos em um ExtractionResult — nenhum deles deve derrubar o processo.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classificação das falhas reportadas em um ExtractionResult."""
    INVALID_REQUEST = "invalid_request"
    UNSUPPORTED_ENGINE = "unsupported_engine"
    LAUNCH_FAILURE = "launch_failure"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    NAVIGATION_ERROR = "navigation_error"
    INTERNAL = "internal"


class ExtractionError(Exception):
    """Erro base da extração. Subclasses definem o `kind` correspondente."""

    kind: ErrorKind = ErrorKind.INTERNAL


class InvalidRequestError(ExtractionError):
    kind = ErrorKind.INVALID_REQUEST


class UnsupportedEngineError(ExtractionError):
    kind = ErrorKind.UNSUPPORTED_ENGINE


class BrowserLaunchError(ExtractionError):
    kind = ErrorKind.LAUNCH_FAILURE


class NavigationTimeoutError(ExtractionError):
    kind = ErrorKind.NAVIGATION_TIMEOUT


class NavigationError(ExtractionError):
    kind = ErrorKind.NAVIGATION_ERROR
