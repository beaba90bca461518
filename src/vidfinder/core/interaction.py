"""
interaction.py
==============
Cliques sintéticos para disparar o player quando o vídeo não inicia sozinho.
"""

import logging
from typing import List, Optional

from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Seletores comuns de botões de play
PLAY_SELECTORS: List[str] = [
    'button[aria-label="Play"]',
    ".vjs-big-play-button",
    ".jw-display-icon-container",
    ".plyr__control--overlaid",
    ".play-button",
    ".play-icon",
    "video",
    "#player",
]


async def brute_click(
    page: Page,
    log: Optional[logging.LoggerAdapter] = None,
    selector_timeout_ms: int = 2000,
) -> Optional[str]:
    """
    Clica no primeiro botão de play visível e depois no centro da página.

    Os popups abertos pelos cliques são fechados pelo PopupSuppressor.
    Retorna o seletor clicado, ou None se nenhum estava visível.
    """
    log = log or logger
    clicked: Optional[str] = None

    for selector in PLAY_SELECTORS:
        try:
            if await page.is_visible(selector, timeout=selector_timeout_ms):
                await page.click(selector, timeout=selector_timeout_ms)
                log.info("Clique no seletor de play: %s", selector)
                clicked = selector
                break
        except Exception as e:
            log.debug("Clique falhou em %s: %s", selector, e)
            continue

    try:
        viewport = page.viewport_size or {"width": 1280, "height": 800}
        await page.mouse.click(viewport["width"] / 2, viewport["height"] / 2)
        log.debug("Clique no centro da página.")
    except Exception as e:
        log.debug("Clique no centro falhou: %s", e)

    return clicked
