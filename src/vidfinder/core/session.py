"""
session.py
==========
Criação de sessões de navegação isoladas.

Uma BrowserSession é dona de um navegador, um contexto e uma página
principal. Ela pertence a uma única tarefa e é fechada exatamente uma vez,
em qualquer caminho de saída (use como `async with`).
"""

import logging
from typing import Optional

from playwright.async_api import BrowserContext, Page

from vidfinder.core.engines import LaunchedBrowser
from vidfinder.core.user_agents import resolve_user_agent

logger = logging.getLogger(__name__)

# Identidade fixa de todas as sessões (fingerprint uniforme)
VIEWPORT = {"width": 1280, "height": 800}
LOCALE = "en-US"
TIMEZONE_ID = "America/New_York"


class BrowserSession:
    """Navegador + contexto + página principal de uma tarefa."""

    def __init__(
        self,
        launched: LaunchedBrowser,
        context: Optional[BrowserContext] = None,
        page: Optional[Page] = None,
        log: Optional[logging.LoggerAdapter] = None,
    ):
        self.launched = launched
        self.context = context
        self.page = page
        self.closed = False
        self._log = log or logger

    @property
    def browser(self):
        return self.launched.browser

    async def open(
        self,
        user_agent: Optional[str] = None,
        ignore_https_errors: bool = True,
    ) -> Page:
        """Cria um contexto novo (cookies/armazenamento isolados) e sua página principal."""
        context = await self.launched.browser.new_context(
            user_agent=resolve_user_agent(user_agent),
            viewport=dict(VIEWPORT),
            locale=LOCALE,
            timezone_id=TIMEZONE_ID,
            ignore_https_errors=ignore_https_errors,
        )
        self.context = context
        for script in self.launched.init_scripts:
            await context.add_init_script(script)
        self.page = await context.new_page()
        return self.page

    async def close(self) -> None:
        """Fecha o navegador. Chamadas repetidas não têm efeito; erros são só registrados."""
        if self.closed:
            return
        self.closed = True
        try:
            await self.launched.browser.close()
            self._log.debug("Navegador fechado.")
        except Exception as e:
            self._log.warning("Erro ao fechar o navegador: %s", e)

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def new_session(
    launched: LaunchedBrowser,
    user_agent: Optional[str] = None,
    ignore_https_errors: bool = True,
    log: Optional[logging.LoggerAdapter] = None,
) -> BrowserSession:
    """
    Abre uma sessão a partir de um navegador já lançado.

    Se a criação do contexto falhar, o navegador é fechado antes de o erro
    ser propagado.
    """
    session = BrowserSession(launched, log=log)
    try:
        await session.open(user_agent, ignore_https_errors)
    except BaseException:
        await session.close()
        raise
    return session
