"""
models.py
=========
Estruturas de dados da extração: requisição, resposta observada e resultado.
"""

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Union
from urllib.parse import urlparse

import validators

from vidfinder.core.errors import ErrorKind, InvalidRequestError


DEFAULT_NAVIGATION_TIMEOUT_MS = 30000
DEFAULT_OBSERVATION_WINDOW_MS = 5000
DEFAULT_LAUNCH_TIMEOUT_MS = 30000
DEFAULT_ENGINE = "chromium"


def split_terms(value: Optional[Union[str, Iterable[str]]]) -> List[str]:
    """Converte "a,b,c" (ou uma coleção) em uma lista de termos não vazios."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [term.strip() for term in value if term and term.strip()]


def _parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


# Rótulos de hostname; aceita "_" (comum em hosts internos) e nomes sem TLD
_HOST_RE = re.compile(
    r"^[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?(?:\.[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?)*\.?$",
    re.IGNORECASE,
)


def is_http_url(url: str) -> bool:
    """
    Verifica se `url` é uma URL http(s) navegável.

    Além do que `validators.url` aceita, também aceita hosts sem domínio de
    topo ("localhost", "intranet") e hosts com "_".
    """
    if validators.url(url, simple_host=True):
        return True
    try:
        parsed = urlparse(url)
        parsed.port  # porta inválida levanta ValueError
    except ValueError:
        return False
    if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
        return False
    return bool(_HOST_RE.match(parsed.hostname))


def is_valid_proxy(proxy: str) -> bool:
    """Aceita "<host>:<port>" ou "<esquema>://<host>[:<port>]"."""
    proxy = proxy.strip()
    if not proxy:
        return False
    if "://" in proxy:
        try:
            return bool(urlparse(proxy).hostname)
        except ValueError:
            return False
    host, _, port = proxy.rpartition(":")
    return bool(host) and port.isdigit() and 0 < int(port) < 65536


# ---------------------------------------------------------------------------
# Requisição
# ---------------------------------------------------------------------------

@dataclass
class ExtractionRequest:
    """
    Parâmetros de uma extração.

    `navigation_timeout_ms` limita apenas a navegação; a janela de observação
    (`observation_window_ms`) é uma duração fixa e independente.
    """
    target_url: str
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    required_selectors: List[str] = field(default_factory=list)
    headless: bool = True
    stealth: bool = False
    allow_frame_navigation: bool = False
    proxy: Optional[str] = None
    enable_adblock: bool = False
    must_contain: Set[str] = field(default_factory=set)
    must_not_contain: Set[str] = field(default_factory=set)
    user_agent: Optional[str] = None
    browser_engine: str = DEFAULT_ENGINE
    brute_click: bool = False
    ignore_certificate_errors: bool = True
    observation_window_ms: int = DEFAULT_OBSERVATION_WINDOW_MS
    launch_timeout_ms: int = DEFAULT_LAUNCH_TIMEOUT_MS
    request_id: Optional[str] = None

    def __post_init__(self):
        self.must_contain = set(self.must_contain or ())
        self.must_not_contain = set(self.must_not_contain or ())
        self.required_selectors = list(self.required_selectors or ())
        if not self.request_id:
            self.request_id = uuid.uuid4().hex[:12]

    def validate(self) -> None:
        """Levanta InvalidRequestError se a requisição não puder ser executada."""
        if not self.target_url or not is_http_url(self.target_url):
            raise InvalidRequestError(f"invalid target url: {self.target_url!r}")
        if not self.target_url.lower().startswith(("http://", "https://")):
            raise InvalidRequestError(f"unsupported url scheme: {self.target_url!r}")
        for name in ("navigation_timeout_ms", "observation_window_ms", "launch_timeout_ms"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise InvalidRequestError(f"{name} must be a positive integer, got {value!r}")
        if self.proxy is not None and not is_valid_proxy(self.proxy):
            raise InvalidRequestError(f"proxy must be '<host>:<port>', got {self.proxy!r}")

    @classmethod
    def from_strings(
        cls,
        url: str,
        timeout: Optional[Union[str, int]] = None,
        selectors: Optional[str] = None,
        stealth: Any = None,
        show_browser: Any = None,
        frame: Any = None,
        proxy: Optional[str] = None,
        adblock: Any = None,
        must_contain: Optional[str] = None,
        not_contain: Optional[str] = None,
        user_agent: Optional[str] = None,
        browser_type: Optional[str] = None,
        brute_click: Any = None,
    ) -> "ExtractionRequest":
        """
        Constrói uma requisição a partir de campos textuais (listas separadas
        por vírgula, booleanos como "true"/"false"), no formato em que um
        corpo de requisição HTTP os entrega.

        Levanta
        -------
        InvalidRequestError
            `timeout` não é um número inteiro.
        """
        try:
            navigation_timeout_ms = int(timeout) if timeout else DEFAULT_NAVIGATION_TIMEOUT_MS
        except (TypeError, ValueError):
            raise InvalidRequestError(f"timeout must be an integer, got {timeout!r}") from None
        return cls(
            target_url=url,
            navigation_timeout_ms=navigation_timeout_ms,
            required_selectors=split_terms(selectors),
            headless=not _parse_bool(show_browser, default=False),
            stealth=_parse_bool(stealth),
            allow_frame_navigation=_parse_bool(frame),
            proxy=proxy or None,
            enable_adblock=_parse_bool(adblock),
            must_contain=set(split_terms(must_contain)),
            must_not_contain=set(split_terms(not_contain)),
            user_agent=user_agent,
            browser_engine=browser_type or DEFAULT_ENGINE,
            brute_click=_parse_bool(brute_click),
        )


# ---------------------------------------------------------------------------
# Resposta observada
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ObservedResponse:
    """Uma resposta de rede vista pela página: URL e content-type (se houver)."""
    url: str
    content_type: Optional[str] = None

    @classmethod
    def from_response(cls, response) -> "ObservedResponse":
        """Constrói a partir de um playwright.async_api.Response."""
        headers = response.headers or {}
        return cls(url=response.url, content_type=headers.get("content-type"))


# ---------------------------------------------------------------------------
# Resultado
# ---------------------------------------------------------------------------

class ResultStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


@dataclass(frozen=True)
class ExtractionResult:
    """Resultado base. Use Success, NotFound ou Failure."""

    @property
    def status(self) -> ResultStatus:
        raise NotImplementedError

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Success(ExtractionResult):
    video_url: str

    @property
    def status(self) -> ResultStatus:
        return ResultStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "success", "videoUrl": self.video_url}


@dataclass(frozen=True)
class NotFound(ExtractionResult):

    @property
    def status(self) -> ResultStatus:
        return ResultStatus.NOT_FOUND

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "error", "message": "No video found"}


@dataclass(frozen=True)
class Failure(ExtractionResult):
    message: str
    kind: ErrorKind = ErrorKind.INTERNAL

    @property
    def status(self) -> ResultStatus:
        return ResultStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "error", "error": self.message, "kind": self.kind.value}


class TaskState(str, Enum):
    """Estados de uma tarefa de extração."""
    IDLE = "idle"
    LAUNCHING = "launching"
    NAVIGATING_AND_OBSERVING = "navigating_and_observing"
    COMPLETED = "completed"
    CLOSED = "closed"
