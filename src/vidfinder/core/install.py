"""
install.py
==========
Instalação dos navegadores do Playwright.

Compatível com Windows, Linux e macOS. No Windows não tenta usar 'sudo' nem
instalar dependências do sistema, pois esses comandos não existem.
"""

import logging
import os
import shutil
import subprocess
import sys
from typing import List

from vidfinder.core.engines import get_engine

logger = logging.getLogger(__name__)


def playwright_install_target(engine: str) -> str:
    """Nome do navegador para `playwright install` ("chrome" é um canal)."""
    variant = get_engine(engine)
    return getattr(variant, "channel", None) or variant.browser_type


def _install_command(target: str, deps: bool = False) -> List[str]:
    return [sys.executable, "-m", "playwright", "install-deps" if deps else "install", target]


def ensure_playwright_browsers(engine: str = "chromium") -> bool:
    """
    Garante que o navegador do engine esteja instalado.

    Retorna True se a instalação (ou verificação) terminou sem erros.
    """
    target = playwright_install_target(engine)
    is_windows = sys.platform.startswith("win")
    env = os.environ.copy()

    logger.info("Instalando o navegador '%s' do Playwright (isso pode levar alguns minutos)...", target)

    if is_windows:
        try:
            subprocess.run(_install_command(target), check=True, env=env)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("Erro ao instalar '%s': %s", target, e)
            logger.error("Tente manualmente: python -m playwright install %s", target)
            return False
        return True

    # Linux / macOS: usa sudo para as dependências do sistema, se disponível
    has_sudo = shutil.which("sudo") is not None
    env["DEBIAN_FRONTEND"] = "noninteractive"
    cmd_prefix = ["sudo", "-E"] if has_sudo else []

    try:
        subprocess.run(_install_command(target), check=True, env=env)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error("Erro ao instalar '%s': %s", target, e)
        return False

    if sys.platform.startswith("linux"):
        try:
            subprocess.run(cmd_prefix + _install_command(target, deps=True), check=True, env=env)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning("Falha ao instalar dependências. O navegador pode não funcionar: %s", e)
            return False

    logger.info("Navegador '%s' instalado com sucesso.", target)
    return True
