"""
general_errors.py
=================
Status codes and exceptions shared by the integrators, root solvers and
thermodynamics engines.

Integrators and solvers report soft failures (budget exhausted, tolerance not
reached) through integer status codes so that callers can chain fallbacks.
Exhausted fallback chains raise ConvergenceError.

Status codes follow the GSL numbering.
"""

# =============================================================================
# STATUS CODES
# =============================================================================
SUCCESS = 0
EXC_EFAILED = 5         # generic failure (e.g. no sign change in bracket)
EXC_EMAXITER = 11       # iteration or evaluation budget exhausted
EXC_EROUND = 18         # roundoff prevents further progress

STATUS_NAMES = {
    SUCCESS: "success",
    EXC_EFAILED: "failed",
    EXC_EMAXITER: "maximum iterations/evaluations reached",
    EXC_EROUND: "roundoff error",
}


class ConvergenceError(RuntimeError):
    """Raised when a root solver or a solver fallback chain does not converge."""

    def __init__(self, message: str, status: int = EXC_EFAILED):
        super().__init__(message)
        self.status = status


def status_name(status: int) -> str:
    """Human-readable description of a status code."""
    return STATUS_NAMES.get(status, f"unknown status {status}")
