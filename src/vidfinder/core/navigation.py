"""
navigation.py
=============
Navegação da página principal.

A navegação espera apenas o marco "domcontentloaded": as requisições de mídia
disparadas depois disso continuam sendo capturadas, porque o observador de
respostas é registrado antes e continua escutando.
"""

import logging
from typing import Iterable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from vidfinder.core.errors import NavigationError, NavigationTimeoutError

logger = logging.getLogger(__name__)

WAIT_UNTIL = "domcontentloaded"


async def navigate(page: Page, url: str, timeout_ms: int) -> None:
    """
    Navega a página até a URL e aguarda o DOMContentLoaded.

    Levanta
    -------
    NavigationTimeoutError
        O tempo limite foi excedido.
    NavigationError
        Qualquer outro erro de rede/navegação.
    """
    try:
        await page.goto(url, wait_until=WAIT_UNTIL, timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeoutError(f"Navigation timeout of {timeout_ms} ms exceeded: {url}") from e
    except PlaywrightError as e:
        raise NavigationError(f"Navigation to {url} failed: {e}") from e


async def find_player_frame_url(page: Page) -> Optional[str]:
    """Retorna o src http(s) do primeiro <iframe> da página, se existir."""
    sources = await page.eval_on_selector_all(
        "iframe[src]", "frames => frames.map(f => f.src)"
    )
    for src in sources or []:
        if src and src.lower().startswith(("http://", "https://")):
            return src
    return None


async def follow_player_frame(
    page: Page,
    timeout_ms: int,
    log: Optional[logging.LoggerAdapter] = None,
) -> Optional[str]:
    """
    Navega a página principal para o primeiro iframe da página (geralmente o
    player embutido). Melhor esforço: erros são registrados e retorna None.
    """
    log = log or logger
    try:
        frame_url = await find_player_frame_url(page)
        if not frame_url:
            log.info("Nenhum iframe para seguir.")
            return None
        log.info("Seguindo iframe: %s", frame_url)
        await navigate(page, frame_url, timeout_ms)
        return frame_url
    except Exception as e:
        log.warning("Falha ao seguir iframe: %s", e)
        return None


async def wait_for_selectors(
    page: Page,
    selectors: Iterable[str],
    timeout_ms: int,
    log: Optional[logging.LoggerAdapter] = None,
) -> bool:
    """
    Aguarda cada seletor aparecer no DOM. Retorna False se algum não apareceu;
    a ausência de um seletor não interrompe a extração.
    """
    log = log or logger
    all_found = True
    for selector in selectors:
        try:
            await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
            log.debug("Seletor encontrado: %s", selector)
        except PlaywrightError as e:
            all_found = False
            log.warning("Seletor não encontrado (%s): %s", selector, e)
    return all_found
