"""
engines.py
==========
Provisionamento de navegadores via Playwright.

Cada família de navegador é uma variante de BrowserEngine, que sabe montar
os argumentos de lançamento e aplicar seu próprio mecanismo de evasão
("stealth"):

- Chromium/Chrome: desativa o marcador AutomationControlled e injeta scripts
  que mascaram as propriedades típicas de automação.
- WebKit: apenas os scripts de mascaramento.
- Firefox: ativa a preferência `privacy.resistFingerprinting`.

Engines suportados: "chromium", "chrome" (canal oficial do Google Chrome),
"firefox" e "webkit".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser
from playwright.async_api import Error as PlaywrightError

from vidfinder.core.errors import BrowserLaunchError, UnsupportedEngineError

logger = logging.getLogger(__name__)


# Argumentos base: sem sandbox e sem infobars.
BASE_CHROMIUM_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
]

# Desativa a validação de certificados no navegador inteiro
IGNORE_CERTIFICATE_ARG = "--ignore-certificate-errors"

STEALTH_CHROMIUM_ARGS: List[str] = [
    "--disable-blink-features=AutomationControlled",
]

# Scripts injetados em todas as páginas do contexto quando o stealth está ativo
STEALTH_INIT_SCRIPTS: List[str] = [
    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});",
    "Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});",
    "Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});",
]

# window.chrome só existe em navegadores da família Chromium
CHROMIUM_STEALTH_INIT_SCRIPTS: List[str] = STEALTH_INIT_SCRIPTS + [
    "window.chrome = window.chrome || { runtime: {} };",
]


@dataclass
class LaunchedBrowser:
    """Navegador em execução e os scripts de evasão a aplicar nos contextos."""
    browser: Browser
    engine: str
    init_scripts: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Variantes de engine
# ---------------------------------------------------------------------------

class BrowserEngine:
    """
    Família de navegador do Playwright.

    Subclasses definem `browser_type` (atributo do objeto Playwright) e
    sobrescrevem `launch_options` / `init_scripts` conforme o mecanismo de
    evasão da família.
    """

    name: str = ""
    browser_type: str = ""

    def launch_options(
        self,
        headless: bool,
        stealth: bool,
        proxy: Optional[str],
        timeout_ms: int,
        ignore_certificate_errors: bool = True,
    ) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": headless, "timeout": timeout_ms}
        if proxy:
            options["proxy"] = {"server": _proxy_server(proxy)}
        return options

    def init_scripts(self, stealth: bool) -> List[str]:
        return list(STEALTH_INIT_SCRIPTS) if stealth else []

    async def launch(
        self,
        playwright,
        headless: bool = True,
        stealth: bool = False,
        proxy: Optional[str] = None,
        timeout_ms: int = 30000,
        ignore_certificate_errors: bool = True,
    ) -> LaunchedBrowser:
        """Lança o navegador. Qualquer erro vira BrowserLaunchError."""
        options = self.launch_options(headless, stealth, proxy, timeout_ms, ignore_certificate_errors)
        browser_type = getattr(playwright, self.browser_type)
        try:
            browser = await browser_type.launch(**options)
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Error launching {self.name}: {e}") from e
        return LaunchedBrowser(
            browser=browser,
            engine=self.name,
            init_scripts=self.init_scripts(stealth),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ChromiumEngine(BrowserEngine):
    """Chromium embutido do Playwright ou, com `channel`, o Chrome instalado."""

    browser_type = "chromium"

    def __init__(self, channel: Optional[str] = None):
        self.channel = channel
        self.name = channel or "chromium"

    def launch_options(self, headless, stealth, proxy, timeout_ms, ignore_certificate_errors=True):
        args = list(BASE_CHROMIUM_ARGS)
        if ignore_certificate_errors:
            args.append(IGNORE_CERTIFICATE_ARG)
        if stealth:
            args.extend(STEALTH_CHROMIUM_ARGS)
        if proxy:
            args.append(f"--proxy-server={proxy}")
        options: Dict[str, Any] = {"headless": headless, "timeout": timeout_ms, "args": args}
        if self.channel:
            options["channel"] = self.channel
        return options

    def init_scripts(self, stealth: bool) -> List[str]:
        return list(CHROMIUM_STEALTH_INIT_SCRIPTS) if stealth else []


class FirefoxEngine(BrowserEngine):
    name = "firefox"
    browser_type = "firefox"

    def launch_options(self, headless, stealth, proxy, timeout_ms, ignore_certificate_errors=True):
        options = super().launch_options(headless, stealth, proxy, timeout_ms, ignore_certificate_errors)
        if stealth:
            options["firefox_user_prefs"] = {"privacy.resistFingerprinting": True}
        return options

    def init_scripts(self, stealth: bool) -> List[str]:
        # A evasão do Firefox é feita pela preferência de lançamento
        return []


class WebKitEngine(BrowserEngine):
    name = "webkit"
    browser_type = "webkit"


ENGINES: Dict[str, BrowserEngine] = {
    "chromium": ChromiumEngine(),
    "chrome": ChromiumEngine(channel="chrome"),
    "firefox": FirefoxEngine(),
    "webkit": WebKitEngine(),
}


def _proxy_server(proxy: str) -> str:
    proxy = proxy.strip()
    return proxy if "://" in proxy else f"http://{proxy}"


def get_engine(name: Optional[str]) -> BrowserEngine:
    """Retorna a variante do engine (sem diferenciar maiúsculas/minúsculas)."""
    engine = ENGINES.get((name or "").strip().lower())
    if engine is None:
        raise UnsupportedEngineError(f"unsupported engine: {name}")
    return engine


async def launch_browser(
    playwright,
    engine: str,
    headless: bool = True,
    stealth: bool = False,
    proxy: Optional[str] = None,
    timeout_ms: int = 30000,
    ignore_certificate_errors: bool = True,
) -> LaunchedBrowser:
    """
    Lança um navegador da família pedida.

    Parâmetros
    ----------
    playwright : playwright.async_api.Playwright
        Instância obtida de `async_playwright()`.
    engine : str
        "chromium", "chrome", "firefox" ou "webkit".
    headless : bool
        Se True, o navegador roda sem interface gráfica.
    stealth : bool
        Ativa o mecanismo de evasão específico da família.
    proxy : str, opcional
        Endereço "<host>:<port>".
    timeout_ms : int
        Tempo máximo para o navegador subir.
    ignore_certificate_errors : bool
        Se False, a família Chromium é lançada sem `--ignore-certificate-errors`.

    Levanta
    -------
    UnsupportedEngineError
        Engine desconhecido.
    BrowserLaunchError
        O Playwright não conseguiu iniciar o navegador.
    """
    variant = get_engine(engine)
    logger.debug("Lançando %s (headless=%s, stealth=%s, proxy=%s)", variant.name, headless, stealth, proxy)
    return await variant.launch(
        playwright,
        headless=headless,
        stealth=stealth,
        proxy=proxy,
        timeout_ms=timeout_ms,
        ignore_certificate_errors=ignore_certificate_errors,
    )
