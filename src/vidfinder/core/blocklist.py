"""
blocklist.py
============
Lista de domínios bloqueados, extraída de um documento de filtros no formato
EasyList/Adblock Plus.

Apenas as regras de âncora de domínio (`||dominio.com^`) são consideradas.
A lista é imutável após a carga e pode ser lida concorrentemente por várias
tarefas sem sincronização.
"""

import logging
import os
import re
import urllib.parse
from typing import FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)

# ||dominio^ no início da linha (regras de exceção começam com @@ e ficam de fora)
_DOMAIN_ANCHOR = re.compile(r"^\|\|([^\^/$*|]+)\^", re.MULTILINE)


class DomainBlocklist:
    """Conjunto imutável de domínios bloqueados."""

    def __init__(self, domains: Iterable[str] = ()):
        self._domains: FrozenSet[str] = frozenset(
            d.strip().lower().rstrip(".") for d in domains if d and d.strip()
        )

    @classmethod
    def from_file(cls, path: str) -> "DomainBlocklist":
        """
        Carrega a lista a partir de um arquivo de filtros.

        Se o arquivo não existir (ex: o download ainda não foi feito), retorna
        uma lista vazia e registra um aviso.
        """
        if not os.path.isfile(path):
            logger.warning("Arquivo de blocklist não encontrado: %s", path)
            return cls()
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            blocklist = parse_filter_list(f.read())
        logger.info("%d domínios bloqueados carregados de %s", len(blocklist), path)
        return blocklist

    @property
    def domains(self) -> FrozenSet[str]:
        return self._domains

    def contains(self, domain: Optional[str]) -> bool:
        """
        Retorna True se o domínio (ou qualquer domínio pai) estiver bloqueado.

        >>> DomainBlocklist(["example.com"]).contains("ads.example.com")
        True
        """
        if not domain:
            return False
        labels = domain.strip().lower().rstrip(".").split(".")
        for i in range(len(labels) - 1):
            if ".".join(labels[i:]) in self._domains:
                return True
        # domínios de um único rótulo (ex: "localhost")
        return len(labels) == 1 and labels[0] in self._domains

    def is_blocked_url(self, url: str) -> bool:
        """Retorna True se o host da URL estiver bloqueado."""
        try:
            host = urllib.parse.urlparse(url).hostname
        except ValueError:
            return False
        return self.contains(host)

    def __contains__(self, domain: str) -> bool:
        return self.contains(domain)

    def __len__(self) -> int:
        return len(self._domains)

    def __bool__(self) -> bool:
        return bool(self._domains)

    def __repr__(self) -> str:
        return f"DomainBlocklist(domains={len(self._domains)})"


def parse_filter_list(text: str) -> DomainBlocklist:
    """Extrai os domínios de todas as linhas `||dominio^` do documento."""
    return DomainBlocklist(match.group(1) for match in _DOMAIN_ANCHOR.finditer(text or ""))
