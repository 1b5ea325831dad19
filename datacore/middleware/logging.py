from __future__ import annotations

from typing import Any

import structlog

from datacore.core.exceptions import BaseError
from datacore.middleware.interceptors import OperationContext, ServiceInterceptor

__all__ = ["LoggingInterceptor"]


class LoggingInterceptor(ServiceInterceptor):
    """Emit one structured line per operation.

    - event="data_operation" on success, with duration_ms and result size
    - event="data_operation_failed" on failure, with error code and exc_info
    - trace_id/operation/layer/entity_type are always bound
    """

    def __init__(self, logger_name: str = "datacore.operations") -> None:
        self._logger = structlog.get_logger(logger_name)

    def _fields(self, ctx: OperationContext) -> dict[str, Any]:
        return {
            "operation": ctx.operation,
            "layer": ctx.layer,
            "entity_type": ctx.entity_type,
            "trace_id": ctx.trace_id,
            "duration_ms": ctx.elapsed_ms(),
        }

    async def after(self, ctx: OperationContext, result: Any) -> None:
        size: int | None = None
        data = getattr(result, "data", None)
        if isinstance(data, list):
            size = len(data)
        elif isinstance(result, list):
            size = len(result)
        self._logger.info("data_operation", status="ok", result_size=size, **self._fields(ctx))

    async def on_error(self, ctx: OperationContext, error: BaseException) -> None:
        code = error.code if isinstance(error, BaseError) else type(error).__name__
        self._logger.warning(
            "data_operation_failed",
            status="error",
            error_code=code,
            exc_info=error,
            **self._fields(ctx),
        )
