"""Input validation with error accumulation.

Every ``check_*`` function is non-throwing and returns an ``(ok, error)``
pair, where ``error`` is ``None`` on success. ``Checker`` runs the same
checks but collects the failures so they can be reported together.

Example:
    >>> ok, err = check_type(42, str, "name")
    >>> ok, err
    (False, 'expected name to be str, got int')

    >>> checker = Checker()
    >>> _ = checker.check_string_not_empty("", "name").check_range(7, 1, 5, "retries")
    >>> checker.errors
    ['name must not be empty', 'retries must be between 1 and 5, got 7']
"""

from typing import Any, Iterable

from .exceptions import ValidationError

CheckResult = tuple[bool, str | None]


def _type_name(expected: type | tuple[type, ...]) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def check_type(value: Any, expected: type | tuple[type, ...], name: str) -> CheckResult:
    """Check that a value is an instance of the expected type.

    ``bool`` is not accepted where ``int`` is expected.
    """
    if isinstance(value, bool) and bool not in (
        expected if isinstance(expected, tuple) else (expected,)
    ):
        return False, f"expected {name} to be {_type_name(expected)}, got bool"
    if not isinstance(value, expected):
        return False, f"expected {name} to be {_type_name(expected)}, got {type(value).__name__}"
    return True, None


def check_not_nil(value: Any, name: str) -> CheckResult:
    """Check that a value is not None."""
    if value is None:
        return False, f"expected {name} to be non-nil"
    return True, None


def check_range(value: Any, lo: float, hi: float, name: str) -> CheckResult:
    """Check that a number lies within ``[lo, hi]``."""
    ok, err = check_type(value, (int, float), name)
    if not ok:
        return ok, err
    if value < lo or value > hi:
        return False, f"{name} must be between {lo} and {hi}, got {value}"
    return True, None


def check_string_not_empty(value: Any, name: str) -> CheckResult:
    """Check that a value is a non-empty string."""
    ok, err = check_type(value, str, name)
    if not ok:
        return ok, err
    if value == "":
        return False, f"{name} must not be empty"
    return True, None


def check_one_of(value: Any, allowed: Iterable[Any], name: str) -> CheckResult:
    """Check that a value is one of an allowed set."""
    allowed = list(allowed)
    if value in allowed:
        return True, None
    choices = ", ".join(str(a) for a in allowed)
    return False, f"{name} must be one of [{choices}], got {value}"


class Checker:
    """Accumulates validation failures.

    Each check method returns the checker so calls can be chained.

    Attributes:
        errors: Error messages in the order the checks failed
    """

    def __init__(self) -> None:
        self.errors: list[str] = []

    def _record(self, result: CheckResult) -> "Checker":
        ok, err = result
        if not ok and err is not None:
            self.errors.append(err)
        return self

    def check(self, ok: bool, error: str | None) -> "Checker":
        """Record the outcome of an arbitrary ``(ok, error)`` predicate."""
        return self._record((ok, error))

    def check_type(self, value: Any, expected: type | tuple[type, ...], name: str) -> "Checker":
        return self._record(check_type(value, expected, name))

    def check_not_nil(self, value: Any, name: str) -> "Checker":
        return self._record(check_not_nil(value, name))

    def check_range(self, value: Any, lo: float, hi: float, name: str) -> "Checker":
        return self._record(check_range(value, lo, hi, name))

    def check_string_not_empty(self, value: Any, name: str) -> "Checker":
        return self._record(check_string_not_empty(value, name))

    def check_one_of(self, value: Any, allowed: Iterable[Any], name: str) -> "Checker":
        return self._record(check_one_of(value, allowed, name))

    @property
    def ok(self) -> bool:
        """True if no check has failed."""
        return not self.errors

    def raise_if_failed(self) -> None:
        """Raise ValidationError listing every failure, if there were any.

        Raises:
            ValidationError: If at least one check failed
        """
        if self.errors:
            raise ValidationError(self.errors)
