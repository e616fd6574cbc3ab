from datetime import datetime

from loguru import logger

from ._ds import Completed, DispatchOutcome, Failed, Unsupported
from ._itypes import RawPayload
from .dispatcher import CommandDispatcher
from .errors import InvalidBodyError, PipelineError
from .headers import (
    TraceHeaders,
    add_content_header,
    annotate_error,
    build_outbound_headers,
    extract_trace_headers,
    fallback_trace_headers,
)
from .messages.model import Message, decode_message
from .publisher import ResponsePublisher
from .sink import AuditStatus, IAuditSink, log_envelope
from .utils import Stopwatch, utc_now


class BookRelay:
    """
    Relays one inbound envelope at a time:

    receive -> extract trace headers -> dispatch -> publish response -> report

    every failure inside the pipeline is caught and reported through the
    audit sink, only a malformed envelope is raised to the caller.

    - report_unsupported: whether an unsupported command is reported,
    it is never reported as a failure.
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        publisher: ResponsePublisher,
        sink: IAuditSink,
        *,
        router_queue: str = "api-router",
        inbound_queue: str = "ms-books",
        report_unsupported: bool = True,
    ):
        self._dispatcher = dispatcher
        self._publisher = publisher
        self._sink = sink
        self._router_queue = router_queue
        self._inbound_queue = inbound_queue
        self._report_unsupported = report_unsupported

    async def receive(self, raw: RawPayload) -> DispatchOutcome:
        received_at = utc_now()
        watch = Stopwatch()
        body_error: InvalidBodyError | None = None
        try:
            message = decode_message(raw)
        except InvalidBodyError as exc:
            message, body_error = exc.message, exc
        logger.info(f"message received from `{self._inbound_queue}`")

        trace: TraceHeaders | None = None
        try:
            trace = extract_trace_headers(message)
            with logger.contextualize(guid=trace.id_header.guid):
                if body_error is not None:
                    raise body_error
                outcome = await self._relay(message, trace)
        except PipelineError as exc:
            logger.error(f"message failed, {exc.kind}: {exc}")
            outcome = Failed(kind=exc.kind, detail=str(exc))
        except Exception as exc:
            logger.exception("unexpected failure while relaying message")
            outcome = Failed(kind="unexpected", detail=str(exc) or type(exc).__name__)

        await self._report(message, trace, outcome, received_at, watch.elapsed_ms)
        return outcome

    async def _relay(self, message: Message, trace: TraceHeaders) -> DispatchOutcome:
        outcome = await self._dispatcher.dispatch(message)
        if not isinstance(outcome, Completed):
            return outcome

        headers = build_outbound_headers(trace.id_header, trace.queue_header)
        if outcome.content_label:
            headers = add_content_header(headers, outcome.content_label)
        await self._publisher.publish(self._router_queue, headers, outcome.body)
        logger.success(f"command `{outcome.action}` relayed to `{self._router_queue}`")
        return outcome

    async def _report(
        self,
        message: Message,
        trace: TraceHeaders | None,
        outcome: DispatchOutcome,
        received_at: datetime,
        elapsed_ms: float,
    ) -> None:
        if isinstance(outcome, Unsupported) and not self._report_unsupported:
            return

        if trace is None:
            trace = fallback_trace_headers(message, received_at, self._inbound_queue)
        headers = build_outbound_headers(trace.id_header, trace.queue_header)

        if isinstance(outcome, Failed):
            headers = annotate_error(headers, trace.queue_header, outcome.detail)
            status = AuditStatus(
                status="failure", kind=outcome.kind, detail=outcome.detail
            )
        elif isinstance(outcome, Unsupported):
            status = AuditStatus(status="unsupported", action=outcome.action)
        else:
            status = AuditStatus(status="success", action=outcome.action)

        try:
            await self._sink.report(
                log_envelope(headers, status), received_at, elapsed_ms
            )
        except Exception:
            logger.exception("failed to report message")
