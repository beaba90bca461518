"""
Testes para vidfinder.core.log.
"""

import logging

from vidfinder.core.log import RequestLogBuffer, attach_request_buffer, get_task_logger


def _make_logger(name: str, buffer: RequestLogBuffer) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.handlers = [buffer]
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def test_task_logger_routes_lines_per_request():
    buffer = RequestLogBuffer()
    _make_logger("vidfinder.tests.routing", buffer)

    get_task_logger("req-1", "vidfinder.tests.routing").info("primeira")
    get_task_logger("req-2", "vidfinder.tests.routing").info("segunda")
    get_task_logger("req-1", "vidfinder.tests.routing").info("terceira")

    lines = buffer.lines("req-1")
    assert len(lines) == 2
    assert lines[0].endswith("[req-1] primeira")
    assert lines[1].endswith("[req-1] terceira")
    assert len(buffer.lines("req-2")) == 1


def test_records_without_request_id_are_ignored():
    buffer = RequestLogBuffer()
    _make_logger("vidfinder.tests.plain", buffer).info("sem tarefa")
    assert buffer.pending() == {}


def test_flush_request_delivers_and_clears():
    buffer = RequestLogBuffer()
    _make_logger("vidfinder.tests.flush", buffer)
    received = []
    buffer.add_listener(lambda rid, lines: received.append((rid, lines)))
    buffer.add_listener(lambda rid, lines: 1 / 0)

    get_task_logger("abc", "vidfinder.tests.flush").info("linha")
    flushed = buffer.flush_request("abc")

    assert len(flushed) == 1
    assert received == [("abc", flushed)]
    assert buffer.lines("abc") == []
    assert buffer.flush_request("abc") == []


def test_buffer_is_bounded():
    buffer = RequestLogBuffer(max_requests=2)
    _make_logger("vidfinder.tests.bounded", buffer)
    for rid in ("a", "b", "c"):
        get_task_logger(rid, "vidfinder.tests.bounded").info("x")
    assert set(buffer.pending()) == {"b", "c"}


def test_attach_request_buffer_registers_on_package_logger():
    package_logger = logging.getLogger("vidfinder")
    buffer = attach_request_buffer()
    try:
        assert buffer in package_logger.handlers
        assert package_logger.isEnabledFor(logging.INFO)
    finally:
        package_logger.removeHandler(buffer)
