"""
vidfinder.core
==============
Módulos principais do vidfinder.

- extractor: orquestração de cada extração (VideoExtractor).
- engines: lançamento dos navegadores (Chromium, Chrome, Firefox, WebKit).
- session: contexto e página isolados por tarefa.
- popups: fechamento de popups.
- navigation: navegação, iframes e espera por seletores.
- network_capture: observação das respostas e seleção da URL de mídia.
- blocklist: domínios bloqueados (EasyList).
"""

from vidfinder.core.blocklist import DomainBlocklist, parse_filter_list
from vidfinder.core.engines import (
    BrowserEngine,
    ChromiumEngine,
    FirefoxEngine,
    WebKitEngine,
    get_engine,
    launch_browser,
)
from vidfinder.core.errors import (
    BrowserLaunchError,
    ErrorKind,
    ExtractionError,
    InvalidRequestError,
    NavigationError,
    NavigationTimeoutError,
    UnsupportedEngineError,
)
from vidfinder.core.extractor import ExtractionTask, VideoExtractor
from vidfinder.core.models import (
    ExtractionRequest,
    ExtractionResult,
    Failure,
    NotFound,
    ObservedResponse,
    Success,
    TaskState,
)
from vidfinder.core.network_capture import ResponseObserver, matches_filters, qualifies
from vidfinder.core.session import BrowserSession, new_session

__all__ = [
    "VideoExtractor",
    "ExtractionTask",
    "ExtractionRequest",
    "ExtractionResult",
    "Success",
    "NotFound",
    "Failure",
    "ObservedResponse",
    "TaskState",
    "DomainBlocklist",
    "parse_filter_list",
    "BrowserEngine",
    "ChromiumEngine",
    "FirefoxEngine",
    "WebKitEngine",
    "get_engine",
    "launch_browser",
    "BrowserSession",
    "new_session",
    "ResponseObserver",
    "matches_filters",
    "qualifies",
    "ErrorKind",
    "ExtractionError",
    "InvalidRequestError",
    "UnsupportedEngineError",
    "BrowserLaunchError",
    "NavigationError",
    "NavigationTimeoutError",
]
