"""
Line-delimited JSON-RPC over stdio.

Each inbound line is one JSON message. The reading loop decodes it and
hands it to a worker pool, so a slow tool never blocks the next request.
Responses are written as single lines under a lock: two workers finishing
together never interleave their output, although responses may leave in a
different order than their requests arrived.

The reader yields bytes (stdin's binary buffer by default) so that a line
of invalid UTF-8 is answered like any other undecodable line instead of
ending the loop. Text readers are accepted as well.
"""

import json
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import IO, Any, TextIO

import structlog

from toolhost.dispatcher import Dispatcher, response_id
from toolhost.errors import RPC_INTERNAL_ERROR, ParseError
from toolhost.logging import ensure_logging
from toolhost.schema import rpc_error

logger = structlog.get_logger(__name__)


def _parse_detail(e: ValueError) -> str:
    if isinstance(e, UnicodeDecodeError):
        return f"invalid UTF-8: {e.reason}"
    if isinstance(e, json.JSONDecodeError):
        return e.msg
    return str(e)


class StdioTransport:
    """
    Serves a Dispatcher over a pair of streams.

    Args:
        dispatcher: Routes each decoded message
        reader: Inbound stream of bytes or text lines (default sys.stdin.buffer)
        writer: Outbound text stream (default sys.stdout)
        max_workers: Size of the worker pool
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        reader: IO[Any] | None = None,
        writer: TextIO | None = None,
        max_workers: int = 8,
    ) -> None:
        ensure_logging()
        self.dispatcher = dispatcher
        self.reader = reader if reader is not None else sys.stdin.buffer
        self.writer = writer if writer is not None else sys.stdout
        self.max_workers = max_workers
        self._write_lock = threading.Lock()

    def serve(self) -> None:
        """
        Read until EOF, dispatching every message.

        Returns once the input is exhausted and all in-flight work has been
        answered.
        """
        logger.info("transport.started", host=self.dispatcher.host.name, max_workers=self.max_workers)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="toolhost") as pool:
            for raw in self.reader:
                try:
                    line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                    line = line.strip()
                    if not line:
                        continue
                    message = json.loads(line)
                except (UnicodeDecodeError, json.JSONDecodeError) as e:
                    fault = ParseError(detail=_parse_detail(e))
                    logger.info("transport.parse_error", error=fault.message)
                    self._write(rpc_error(None, fault.to_rpc_error()))
                    continue
                pool.submit(self._handle, message)

        logger.info("transport.stopped")

    def _handle(self, message: Any) -> None:
        try:
            response = self.dispatcher.handle_message(message)
        except Exception as e:
            # handle_message answers its own faults; this is a last resort
            logger.exception("transport.dispatch_failed")
            if isinstance(message, dict) and "id" not in message:
                return
            response = rpc_error(
                response_id(message),
                {"code": RPC_INTERNAL_ERROR, "message": f"Internal error: {e}"},
            )
        if response is not None:
            self._write(response)

    def _write(self, response: dict[str, Any]) -> None:
        line = json.dumps(response, default=str)
        with self._write_lock:
            self.writer.write(line + "\n")
            self.writer.flush()
