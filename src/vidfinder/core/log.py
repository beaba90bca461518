"""
log.py
======
Logging por tarefa.

Cada tarefa de extração carrega seu próprio `request_id` em um
LoggerAdapter, em vez de uma variável global de "requisição atual". Isso
permite várias extrações simultâneas com as linhas de log corretamente
atribuídas.

O RequestLogBuffer é um handler que acumula as linhas de cada requisição e
as entrega a ouvintes (ex: um canal de streaming de logs) quando solicitado.
"""

import logging
import threading
from collections import OrderedDict
from typing import Callable, Dict, List, Optional

from rich.logging import RichHandler

LOGGER_NAME = "vidfinder"
LOG_FORMAT = "%(asctime)s - [%(request_id)s] %(message)s"
DATE_FORMAT = "%m/%d/%Y %I:%M:%S %p"

Listener = Callable[[str, List[str]], None]


class TaskLogAdapter(logging.LoggerAdapter):
    """Adiciona o request_id da tarefa a todos os registros."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("request_id", self.extra["request_id"])
        kwargs["extra"] = extra
        return msg, kwargs


def get_task_logger(request_id: str, name: str = LOGGER_NAME) -> TaskLogAdapter:
    return TaskLogAdapter(logging.getLogger(name), {"request_id": request_id})


class _RequestIdDefault(logging.Filter):
    """Garante o atributo request_id em registros emitidos fora de uma tarefa."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def configure_logging(verbose: bool = False, console=None) -> logging.Logger:
    """Configura a saída de logs do pacote no terminal via rich."""
    handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("[%(request_id)s] %(message)s"))
    handler.addFilter(_RequestIdDefault())

    root = logging.getLogger(LOGGER_NAME)
    root.handlers = [h for h in root.handlers if not isinstance(h, RichHandler)]
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    return root


class RequestLogBuffer(logging.Handler):
    """
    Acumula as linhas formatadas por request_id.

    `flush_request(request_id)` entrega as linhas a todos os ouvintes e limpa
    o buffer da requisição. Falhas de um ouvinte não afetam os demais nem a
    extração.
    """

    def __init__(self, level: int = logging.INFO, max_requests: int = 1000):
        super().__init__(level)
        self.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        self.max_requests = max_requests
        self._buffers: "OrderedDict[str, List[str]]" = OrderedDict()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, record: logging.LogRecord) -> None:
        request_id = getattr(record, "request_id", None)
        if not request_id or request_id == "-":
            return
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._buffers.setdefault(request_id, []).append(line)
            while len(self._buffers) > self.max_requests:
                self._buffers.popitem(last=False)

    def lines(self, request_id: str) -> List[str]:
        with self._lock:
            return list(self._buffers.get(request_id, []))

    def flush_request(self, request_id: str) -> List[str]:
        """Entrega e remove as linhas acumuladas da requisição."""
        with self._lock:
            lines = self._buffers.pop(request_id, [])
        if not lines:
            return lines
        for listener in list(self._listeners):
            try:
                listener(request_id, lines)
            except Exception as e:
                logging.getLogger(__name__).debug("Ouvinte de log falhou: %s", e)
        return lines

    def pending(self) -> Dict[str, int]:
        with self._lock:
            return {rid: len(lines) for rid, lines in self._buffers.items()}


def attach_request_buffer(buffer: Optional[RequestLogBuffer] = None) -> RequestLogBuffer:
    """Registra um RequestLogBuffer no logger do pacote e o retorna."""
    buffer = buffer or RequestLogBuffer()
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.addHandler(buffer)
    if package_logger.level == logging.NOTSET or package_logger.level > buffer.level:
        package_logger.setLevel(buffer.level)
    return buffer
