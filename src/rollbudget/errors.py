from __future__ import annotations

from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Dict, Optional


class ExitCode(int, Enum):
    OK = 0
    CONFIG_INVALID = 10
    INPUT_INVALID = 20
    RUNTIME_ERROR = 30
    INTERNAL_ERROR = 50


@dataclass(frozen=True)
class RollBudgetProblem:
    code: str                 # stable machine code, e.g. "RB_CONFIG_OUT_OF_RANGE"
    category: str             # "config" | "input" | "runtime" | "internal"
    message: str              # short human message
    details: Dict[str, Any] = field(default_factory=dict)  # structured details for debugging
    remediation: Optional[str] = None  # actionable next step


class RollBudgetException(Exception):
    def __init__(
        self,
        problem: RollBudgetProblem,
        exit_code: ExitCode,
        *,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(problem.message)
        self.problem = problem
        self.exit_code = exit_code
        self.cause = cause


class InvalidConfiguration(RollBudgetException, ValueError):
    """Raised when a tracker configuration violates its bounds."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        remediation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            RollBudgetProblem(
                code=code,
                category="config",
                message=message,
                details=details or {},
                remediation=remediation,
            ),
            ExitCode.CONFIG_INVALID,
            cause=cause,
        )


class InvalidInput(RollBudgetException, ValueError):
    """Raised for malformed events files or out-of-range call arguments."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        remediation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            RollBudgetProblem(
                code=code,
                category="input",
                message=message,
                details=details or {},
                remediation=remediation,
            ),
            ExitCode.INPUT_INVALID,
            cause=cause,
        )


def problem_to_dict(p: RollBudgetProblem) -> Dict[str, Any]:
    d = asdict(p)
    if d.get("remediation") is None:
        d.pop("remediation", None)
    return d
