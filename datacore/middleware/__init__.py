from .audit import AuditSink, AuditTrailInterceptor
from .interceptors import Interceptor, InterceptorChain, OperationContext, ServiceInterceptor
from .logging import LoggingInterceptor

__all__ = [
    "AuditSink",
    "AuditTrailInterceptor",
    "Interceptor",
    "InterceptorChain",
    "LoggingInterceptor",
    "OperationContext",
    "ServiceInterceptor",
]
