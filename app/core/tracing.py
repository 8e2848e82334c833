"""
Langfuse tracing.

Handlers, LLM generations, embedding batches and vector searches are wrapped
with `langfuse.observe` when LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY are
set; otherwise the decorators leave functions untouched. Traces are flushed at
the end of every request. Flush failures are logged and never reach the client.
"""
import logging
from functools import lru_cache
from typing import Callable, Optional

from langfuse import Langfuse, observe

from app.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_langfuse() -> Optional[Langfuse]:
    """Process-wide Langfuse client, or None when no credentials are configured."""
    config = settings.tracing
    if not config.enabled:
        logger.info("Langfuse credentials not found; tracing disabled")
        return None
    logger.info(f"Langfuse tracing enabled ({config.host})")
    return Langfuse(public_key=config.public_key, secret_key=config.secret_key, host=config.host)


def traced(name: str, as_type: Optional[str] = None, capture_input: bool = True,
           capture_output: bool = True) -> Callable:
    def decorator(func: Callable) -> Callable:
        if get_langfuse() is None:
            return func
        options = {
            "name": name,
            "capture_input": capture_input,
            "capture_output": capture_output,
        }
        if as_type:
            options["as_type"] = as_type
        return observe(**options)(func)
    return decorator


def flush_traces() -> None:
    client = get_langfuse()
    if client is None:
        return
    try:
        client.flush()
    except Exception as e:
        logger.warning(f"Failed to flush traces: {e}")


def shutdown_tracing() -> None:
    client = get_langfuse()
    if client is None:
        return
    try:
        client.shutdown()
    except Exception as e:
        logger.warning(f"Failed to shut down tracing: {e}")
