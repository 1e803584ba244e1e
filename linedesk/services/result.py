import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown") -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


def best_effort(logger: logging.Logger, action: str, fn: Callable[..., object], *args, **kwargs) -> Result:
    """Run a side-channel call that must never break the main flow.

    Exceptions and failed Results are logged as warnings and returned as a failed Result.
    """
    try:
        outcome = fn(*args, **kwargs)
    except Exception as e:
        logger.warning(
            f"{action} failed: {e}",
            extra={"context": {"action": action, "error": str(e)}},
        )
        return Result.failure(str(e), "best_effort_error")

    if isinstance(outcome, Result):
        if not outcome.ok:
            logger.warning(
                f"{action} failed: {outcome.error}",
                extra={"context": {"action": action, "error": outcome.error, "error_code": outcome.error_code}},
            )
        return outcome
    return Result.success(outcome)
