"""
network_capture.py
==================
Observação passiva das respostas de rede da página e seleção da URL de mídia.

Uma resposta se qualifica quando:

1. o content-type contém "video" ou "mpegurl" (heurística para manifestos
   HLS e arquivos de vídeo, sem parse estrito do MIME);
2. a URL contém ao menos um termo obrigatório (se houver termos);
3. a URL não contém nenhum termo proibido;
4. com adblock ativo, o host não está na blocklist.

Entre todas as respostas qualificadas dentro da janela de observação, a
ÚLTIMA vence: cada nova correspondência substitui a anterior. A janela é
sempre consumida por inteiro, sem saída antecipada, porque a variante
preferida do stream costuma ser pedida por último.
"""

import asyncio
import logging
from typing import AsyncIterator, Collection, List, Optional

from playwright.async_api import Page, Response, Route

from vidfinder.core.blocklist import DomainBlocklist
from vidfinder.core.models import ObservedResponse

logger = logging.getLogger(__name__)

MEDIA_CONTENT_TYPE_MARKERS = ("video", "mpegurl")


# ---------------------------------------------------------------------------
# Funções de filtragem
# ---------------------------------------------------------------------------

def is_media_content_type(content_type: Optional[str]) -> bool:
    """True se o content-type contiver "video" ou "mpegurl" (sensível à caixa)."""
    if not content_type:
        return False
    return any(marker in content_type for marker in MEDIA_CONTENT_TYPE_MARKERS)


def matches_filters(
    url: str,
    must_contain: Collection[str] = (),
    must_not_contain: Collection[str] = (),
) -> bool:
    """
    Aplica os termos de inclusão/exclusão à URL (substring, sensível à caixa).

    Conjunto de inclusão vazio aceita tudo; conjunto de exclusão vazio não
    exclui nada.
    """
    if must_contain and not any(term in url for term in must_contain):
        return False
    if must_not_contain and any(term in url for term in must_not_contain):
        return False
    return True


def qualifies(
    response: ObservedResponse,
    must_contain: Collection[str] = (),
    must_not_contain: Collection[str] = (),
    blocklist: Optional[DomainBlocklist] = None,
) -> bool:
    """True se a resposta for mídia, passar pelos filtros e não estiver bloqueada."""
    if not is_media_content_type(response.content_type):
        return False
    if not matches_filters(response.url, must_contain, must_not_contain):
        return False
    if blocklist and blocklist.is_blocked_url(response.url):
        return False
    return True


# ---------------------------------------------------------------------------
# Bloqueio de requisições (adblock)
# ---------------------------------------------------------------------------

async def install_request_blocking(
    page: Page,
    blocklist: DomainBlocklist,
    log: Optional[logging.LoggerAdapter] = None,
) -> None:
    """Aborta as requisições da página cujo host esteja na blocklist."""
    log = log or logger

    async def _handle_route(route: Route) -> None:
        url = route.request.url
        if blocklist.is_blocked_url(url):
            log.debug("Requisição bloqueada: %s", url[:120])
            await route.abort()
        else:
            await route.continue_()

    await page.route("**/*", _handle_route)


# ---------------------------------------------------------------------------
# Classe principal: ResponseObserver
# ---------------------------------------------------------------------------

class ResponseObserver:
    """
    Acumulador das respostas de rede de uma página.

    Uso típico
    ----------
    >>> observer = ResponseObserver({"manifest"}, {"ad"})
    >>> observer.attach(page)
    >>> await page.goto(url)
    >>> video_url = await observer.collect(5000)

    Cada página pertence a uma única tarefa, então o acumulador não é
    compartilhado entre tarefas concorrentes.
    """

    def __init__(
        self,
        must_contain: Collection[str] = (),
        must_not_contain: Collection[str] = (),
        blocklist: Optional[DomainBlocklist] = None,
        log: Optional[logging.LoggerAdapter] = None,
    ):
        self.must_contain = frozenset(must_contain)
        self.must_not_contain = frozenset(must_not_contain)
        self.blocklist = blocklist
        self.candidate: Optional[str] = None
        self.matches: List[str] = []
        self.observed_count = 0
        self._queue: "asyncio.Queue[ObservedResponse]" = asyncio.Queue()
        self._consumed = False
        self._log = log or logger

    def attach(self, page: Page) -> "ResponseObserver":
        """Registra o observador no evento "response" da página."""
        page.on("response", self.handle_response)
        return self

    def handle_response(self, response: Response) -> None:
        """Callback do evento "response" do Playwright."""
        try:
            observed = ObservedResponse.from_response(response)
        except Exception as e:
            self._log.debug("Resposta ignorada: %s", e)
            return
        self.push(observed)

    def push(self, observed: ObservedResponse) -> None:
        self._queue.put_nowait(observed)

    async def events(self, window_ms: int) -> AsyncIterator[ObservedResponse]:
        """
        Gera as respostas observadas até o fim da janela.

        Inclui as respostas recebidas antes da chamada (ex: durante a
        navegação). A sequência é finita e só pode ser consumida uma vez.
        """
        if self._consumed:
            raise RuntimeError("ResponseObserver.events() can only be consumed once")
        self._consumed = True

        loop = asyncio.get_running_loop()
        deadline = loop.time() + window_ms / 1000
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                observed = await asyncio.wait_for(self._queue.get(), timeout=remaining)
            except asyncio.TimeoutError:
                break
            self.observed_count += 1
            yield observed

    def offer(self, observed: ObservedResponse) -> bool:
        """Avalia uma resposta; se qualificar, ela passa a ser a candidata."""
        if not qualifies(observed, self.must_contain, self.must_not_contain, self.blocklist):
            return False
        self.candidate = observed.url
        self.matches.append(observed.url)
        self._log.info("Mídia encontrada (%s): %s", observed.content_type, observed.url[:120])
        return True

    async def collect(self, window_ms: int) -> Optional[str]:
        """Consome a janela inteira e retorna a última URL qualificada (ou None)."""
        async for observed in self.events(window_ms):
            self.offer(observed)
        return self.candidate

    def __repr__(self) -> str:
        return f"ResponseObserver(matches={len(self.matches)}, candidate={self.candidate!r})"
