"""
user_agents.py
==============
Resolução do user agent de cada sessão.

Quando o chamador não informa um user agent (ou pede "random"), gera-se um
user agent de desktop plausível, variando plataforma, navegador e versão.
"""

import random
from typing import Optional

# Plataformas no formato usado dentro dos parênteses do user agent
_PLATFORMS = [
    "Windows NT 10.0; Win64; x64",
    "Macintosh; Intel Mac OS X 10_15_7",
    "X11; Linux x86_64",
]

_CHROME_TEMPLATE = (
    "Mozilla/5.0 ({platform}) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/{major}.0.{build}.{patch} Safari/537.36"
)
_EDGE_TEMPLATE = _CHROME_TEMPLATE + " Edg/{major}.0.{build}.{patch}"
_FIREFOX_TEMPLATE = (
    "Mozilla/5.0 ({platform}; rv:{major}.0) Gecko/20100101 Firefox/{major}.0"
)
_SAFARI_TEMPLATE = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/{major}.{minor} Safari/605.1.15"
)


def random_user_agent(rng: Optional[random.Random] = None) -> str:
    """Gera um user agent de desktop aleatório."""
    rng = rng or random.Random()
    family = rng.choice(["chrome", "chrome", "chrome", "edge", "firefox", "safari"])

    if family == "safari":
        return _SAFARI_TEMPLATE.format(major=rng.randint(15, 17), minor=rng.randint(0, 6))

    platform = rng.choice(_PLATFORMS)
    if family == "firefox":
        return _FIREFOX_TEMPLATE.format(platform=platform, major=rng.randint(115, 128))

    template = _EDGE_TEMPLATE if family == "edge" else _CHROME_TEMPLATE
    return template.format(
        platform=platform,
        major=rng.randint(114, 126),
        build=rng.randint(5000, 6500),
        patch=rng.randint(0, 200),
    )


def resolve_user_agent(value: Optional[str]) -> str:
    """
    Retorna o user agent a ser usado na sessão.

    None, string vazia/só espaços ou "random" (qualquer caixa) geram um
    user agent aleatório; qualquer outro valor é usado literalmente.
    """
    if value is None or not value.strip() or value.strip().lower() == "random":
        return random_user_agent()
    return value.strip()
