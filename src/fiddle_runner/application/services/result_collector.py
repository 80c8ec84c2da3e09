"""
Result Collector

Harvests timing and output from the shared channel once the worker has exited.
"""

from decimal import ROUND_DOWN, Decimal
from typing import Optional

from fiddle_runner.domain.entities import ExecutionContext
from fiddle_runner.domain.ports import IChannelPort
from fiddle_runner.domain.value_objects import ErrorKind, ExecutionError, Result
from fiddle_runner.errors import MalformedChannelPayloadError
from fiddle_runner.infrastructure.logging.logging_config import get_logger

logger = get_logger(__name__)

_MILLISECOND = Decimal("0.001")


def elapsed_seconds(begin_tm: float, finish_tm: float) -> Decimal:
    """
    Elapsed time between two worker timestamps, truncated to milliseconds.

    Timestamps are subtracted through their shortest decimal representation,
    so 5.01 - 5.0 gives exactly 0.010 instead of 0.00999...
    """
    elapsed = Decimal(repr(float(finish_tm))) - Decimal(repr(float(begin_tm)))
    return elapsed.quantize(_MILLISECOND, rounding=ROUND_DOWN)


def format_duration(seconds: Decimal) -> str:
    """
    Format a non-negative number of seconds as HH:MM:SS.mmm.

    Examples:
        >>> format_duration(Decimal("2.345"))
        '00:00:02.345'
        >>> format_duration(Decimal("3725.5"))
        '01:02:05.500'
    """
    seconds = Decimal(seconds).quantize(_MILLISECOND, rounding=ROUND_DOWN)
    whole = int(seconds)
    millis = int((seconds - whole) * 1000)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


class ResultCollector:
    """
    Reads the channel after the worker exits and fills the result.

    Missing output is not an exception: it is recorded on the execution
    context and the run completes with a null output.
    """

    def collect(self, channel: IChannelPort, context: ExecutionContext) -> Result:
        result = Result()

        try:
            state, rejected = channel.read_partial()
        except MalformedChannelPayloadError as e:
            logger.error(
                "Shared channel cannot be interpreted",
                environment_id=context.environment_id,
                error=e.message,
                detail=e.detail,
            )
            context.add_error(
                ExecutionError.from_exception(ErrorKind.MALFORMED_CHANNEL_PAYLOAD, e)
            )
            context.set_result(None)
            return result

        result.duration = self._duration(state.begin_tm, state.finish_tm, context)

        for field_name, problem in sorted(rejected.items()):
            self._rejected_field(field_name, problem, context)

        for record in state.errors:
            context.add_error(
                ExecutionError(
                    kind=ErrorKind.WORKER_REPORTED,
                    message=record.message,
                    detail=record.type,
                )
            )

        if state.result is None:
            logger.error(
                "Worker produced no result",
                environment_id=context.environment_id,
            )
            context.add_error(
                ExecutionError(
                    kind=ErrorKind.WORKER_PRODUCED_NO_RESULT,
                    message=f"Fiddle {context.environment_id} did not return any result.",
                )
            )
            context.set_result(None)
        else:
            context.set_result(state.result)
            result.output = state.result

        if context.is_debug:
            if state.compiled is not None:
                context.set_compiled(state.compiled)
            if state.context is not None:
                context.set_context(state.context)

        return result

    def _rejected_field(self, field_name: str, problem: str, context: ExecutionContext) -> None:
        # compiled and context only matter for debug runs
        if field_name != "errors" and not context.is_debug:
            logger.debug(
                "Ignoring malformed debug field",
                environment_id=context.environment_id,
                field=field_name,
            )
            return

        logger.warning(
            "Malformed shared channel field",
            environment_id=context.environment_id,
            field=field_name,
            problem=problem,
        )
        context.add_error(
            ExecutionError(
                kind=ErrorKind.MALFORMED_CHANNEL_PAYLOAD,
                message=f"Shared channel field {field_name} holds unexpected values",
                detail=problem,
            )
        )

    def _duration(
        self,
        begin_tm: Optional[float],
        finish_tm: Optional[float],
        context: ExecutionContext,
    ) -> Optional[str]:
        if begin_tm is None or finish_tm is None:
            logger.debug(
                "Worker timestamps missing, duration left unset",
                environment_id=context.environment_id,
                begin_tm=begin_tm,
                finish_tm=finish_tm,
            )
            return None

        elapsed = elapsed_seconds(begin_tm, finish_tm)
        if elapsed < 0:
            logger.warning(
                "Worker finished before it began, clamping duration",
                environment_id=context.environment_id,
                begin_tm=begin_tm,
                finish_tm=finish_tm,
            )
            elapsed = Decimal(0)
        return format_duration(elapsed)
