import logging
import traceback
from typing import Any, Dict, Optional, Set

from .change_log import ChangeLog
from .messages import CompileFailed, CompileWarning

logger = logging.getLogger(__name__)

def parse_exception(exc: BaseException, _seen: Optional[Set[int]] = None) -> Dict[str, Any]:
    """Structured view of an exception: class, message, frames and cause"""
    seen = _seen if _seen is not None else set()
    seen.add(id(exc))
    exc_type = type(exc)
    data: Dict[str, Any] = {
        "class": f"{exc_type.__module__}.{exc_type.__qualname__}",
        "message": str(exc),
        "trace-elems": [
            {"file": frame.filename, "line": frame.lineno, "fn": frame.name}
            for frame in traceback.extract_tb(exc.__traceback__)
        ],
    }
    cause = exc.__cause__ or exc.__context__
    if cause is not None and id(cause) not in seen:
        data["cause"] = parse_exception(cause, seen)
    return data

def format_exception(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

def report_compile_failure(change_log: ChangeLog, exc: BaseException) -> Optional[CompileFailed]:
    """Forward a compiler exception to clients. Never raises."""
    try:
        event = CompileFailed(
            exception_data=parse_exception(exc),
            formatted_exception=format_exception(exc),
        )
        change_log.append(event)
        logger.warning(f"Compile failed: {exc}")
        return event
    except Exception:
        logger.exception("Could not report compile failure")
        return None

def report_compile_warning(change_log: ChangeLog, message: str) -> Optional[CompileWarning]:
    """Forward a compiler warning to clients. Never raises."""
    try:
        event = CompileWarning(message=str(message))
        change_log.append(event)
        logger.info(f"Compile warning: {message}")
        return event
    except Exception:
        logger.exception("Could not report compile warning")
        return None
