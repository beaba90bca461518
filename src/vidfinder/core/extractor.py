"""
extractor.py
============
Orquestração da extração de URLs de vídeo.

Cada requisição vira uma ExtractionTask independente:

    IDLE -> LAUNCHING -> NAVIGATING_AND_OBSERVING -> COMPLETED -> CLOSED

1. Lança o navegador do engine pedido (engines.py).
2. Abre um contexto/página isolados (session.py).
3. Registra o supressor de popups e o observador de respostas ANTES da
   navegação, para não perder as primeiras respostas.
4. Navega até o DOMContentLoaded (navigation.py) e executa as interações
   opcionais (iframe, seletores, cliques).
5. Consome a janela de observação e devolve a última URL qualificada.

O navegador é fechado exatamente uma vez em qualquer caminho de saída, e
nenhum erro escapa de `extract()`: tudo vira um ExtractionResult.
"""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional

from playwright.async_api import async_playwright

from vidfinder.core.blocklist import DomainBlocklist
from vidfinder.core.engines import BrowserEngine, get_engine
from vidfinder.core.errors import BrowserLaunchError, ErrorKind, ExtractionError
from vidfinder.core.interaction import brute_click
from vidfinder.core.log import get_task_logger
from vidfinder.core.models import (
    ExtractionRequest,
    ExtractionResult,
    Failure,
    NotFound,
    Success,
    TaskState,
)
from vidfinder.core.navigation import follow_player_frame, navigate, wait_for_selectors
from vidfinder.core.network_capture import ResponseObserver, install_request_blocking
from vidfinder.core.popups import PopupSuppressor
from vidfinder.core.session import BrowserSession

LAUNCH_FAILURE_MESSAGE = "Failed to launch browser"


# ---------------------------------------------------------------------------
# Tarefa de extração
# ---------------------------------------------------------------------------

class ExtractionTask:
    """
    Execução de uma única ExtractionRequest.

    Todo o estado (sessão, observador, logger com request_id) pertence à
    tarefa; nada é compartilhado com outras tarefas além da blocklist.
    """

    def __init__(
        self,
        request: ExtractionRequest,
        blocklist: Optional[DomainBlocklist] = None,
        playwright_factory: Callable = async_playwright,
    ):
        self.request = request
        self.blocklist = blocklist
        self.playwright_factory = playwright_factory
        self.log = get_task_logger(request.request_id, __name__)
        self.state = TaskState.IDLE
        self.history: List[TaskState] = [TaskState.IDLE]
        self.session: Optional[BrowserSession] = None
        self.observer: Optional[ResponseObserver] = None
        self.popups: Optional[PopupSuppressor] = None
        self.result: Optional[ExtractionResult] = None

    def _transition(self, state: TaskState) -> None:
        self.state = state
        self.history.append(state)

    async def run(self) -> ExtractionResult:
        request = self.request
        self.log.info("Iniciando extração: %s (engine=%s)", request.target_url, request.browser_engine)
        try:
            request.validate()
            engine = get_engine(request.browser_engine)
        except ExtractionError as e:
            self.log.error("Requisição recusada: %s", e)
            return self._finish(Failure(str(e), e.kind))

        try:
            async with self.playwright_factory() as playwright:
                result = await self._run_with(playwright, engine)
        except Exception as e:
            self.log.exception("Erro interno durante a extração: %s", e)
            result = Failure(str(e) or type(e).__name__, ErrorKind.INTERNAL)
        return self._finish(result)

    def _finish(self, result: ExtractionResult) -> ExtractionResult:
        if self.state is not TaskState.COMPLETED:
            self._transition(TaskState.COMPLETED)
        self._transition(TaskState.CLOSED)
        self.result = result
        if isinstance(result, Success):
            self.log.info("URL de vídeo extraída: %s", result.video_url)
        elif isinstance(result, NotFound):
            self.log.info("Nenhum vídeo encontrado.")
        else:
            self.log.warning("Extração falhou (%s): %s", result.kind.value, result.message)
        return result

    async def _run_with(self, playwright, engine: BrowserEngine) -> ExtractionResult:
        request = self.request

        self._transition(TaskState.LAUNCHING)
        try:
            launched = await engine.launch(
                playwright,
                headless=request.headless,
                stealth=request.stealth,
                proxy=request.proxy,
                timeout_ms=request.launch_timeout_ms,
                ignore_certificate_errors=request.ignore_certificate_errors,
            )
        except BrowserLaunchError as e:
            self.log.error("Erro ao lançar o navegador: %s", e)
            return Failure(LAUNCH_FAILURE_MESSAGE, ErrorKind.LAUNCH_FAILURE)

        self.session = BrowserSession(launched, log=self.log)
        try:
            result = await self._navigate_and_observe(self.session)
        except ExtractionError as e:
            result = Failure(str(e), e.kind)
        except Exception as e:
            self.log.exception("Erro durante a execução da tarefa: %s", e)
            result = Failure(str(e) or type(e).__name__, ErrorKind.INTERNAL)
        finally:
            self._transition(TaskState.COMPLETED)
            await self.session.close()
        return result

    async def _navigate_and_observe(self, session: BrowserSession) -> ExtractionResult:
        request = self.request
        page = await session.open(request.user_agent, request.ignore_certificate_errors)
        self._transition(TaskState.NAVIGATING_AND_OBSERVING)

        # Listeners antes da navegação
        self.popups = PopupSuppressor(session.context, page, log=self.log).attach()
        blocklist = self.blocklist if request.enable_adblock else None
        if blocklist:
            await install_request_blocking(page, blocklist, log=self.log)
        elif request.enable_adblock:
            self.log.warning("Adblock pedido, mas nenhuma blocklist foi carregada.")
        self.observer = ResponseObserver(
            request.must_contain,
            request.must_not_contain,
            blocklist=blocklist,
            log=self.log,
        ).attach(page)

        self.log.info("Navegando para: %s", request.target_url)
        await navigate(page, request.target_url, request.navigation_timeout_ms)
        self.log.info("Página carregada (DOMContentLoaded).")

        if request.allow_frame_navigation:
            await follow_player_frame(page, request.navigation_timeout_ms, log=self.log)
        if request.required_selectors:
            await wait_for_selectors(
                page, request.required_selectors, request.navigation_timeout_ms, log=self.log
            )
        if request.brute_click:
            await brute_click(page, log=self.log)

        self.log.info("Monitorando a rede por %d ms...", request.observation_window_ms)
        video_url = await self.observer.collect(request.observation_window_ms)
        if video_url:
            return Success(video_url)
        return NotFound()


# ---------------------------------------------------------------------------
# Classe principal: VideoExtractor
# ---------------------------------------------------------------------------

class VideoExtractor:
    """
    Extrator de URLs de vídeo via automação de navegador.

    Parâmetros
    ----------
    blocklist : DomainBlocklist, opcional
        Domínios de publicidade consultados quando a requisição ativa o adblock.
        É somente leitura e compartilhada entre as tarefas.
    playwright_factory : callable
        Fábrica do gerenciador de contexto do Playwright (padrão:
        `async_playwright`). Cada tarefa inicia o seu próprio driver.
    """

    def __init__(
        self,
        blocklist: Optional[DomainBlocklist] = None,
        playwright_factory: Callable = async_playwright,
    ):
        self.blocklist = blocklist
        self.playwright_factory = playwright_factory

    def create_task(self, request: ExtractionRequest) -> ExtractionTask:
        return ExtractionTask(request, self.blocklist, self.playwright_factory)

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """Executa uma extração. Nunca levanta exceção: sempre retorna um resultado."""
        return await self.create_task(request).run()

    async def extract_many(
        self,
        requests: Iterable[ExtractionRequest],
        concurrency: int = 2,
    ) -> List[ExtractionResult]:
        """Executa várias extrações em paralelo, no máximo `concurrency` por vez."""
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _bounded(request: ExtractionRequest) -> ExtractionResult:
            async with semaphore:
                return await self.extract(request)

        return list(await asyncio.gather(*(_bounded(r) for r in requests)))
