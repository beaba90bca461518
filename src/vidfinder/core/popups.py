"""
popups.py
=========
Fecha automaticamente popups e pop-unders abertos durante a extração.

Qualquer página criada no contexto que não seja a página principal é fechada
assim que aparece. Falhas ao fechar são apenas registradas.
"""

import logging
from typing import Optional

from playwright.async_api import BrowserContext, Page

logger = logging.getLogger(__name__)


class PopupSuppressor:
    """
    Observa o evento "page" de um contexto e fecha as páginas extras.

    A inscrição dura enquanto o contexto existir; ao fechar o navegador ela
    some junto.
    """

    def __init__(
        self,
        context: BrowserContext,
        primary_page: Page,
        log: Optional[logging.LoggerAdapter] = None,
    ):
        self.context = context
        self.primary_page = primary_page
        self.closed_count = 0
        self._log = log or logger

    def attach(self) -> "PopupSuppressor":
        self.context.on("page", self.handle_page)
        return self

    async def handle_page(self, page: Page) -> None:
        if page is self.primary_page:
            return
        self._log.info("Popup detectado e fechado: %s", getattr(page, "url", "?"))
        try:
            await page.close()
            self.closed_count += 1
        except Exception as e:
            self._log.debug("Erro ao fechar popup: %s", e)
