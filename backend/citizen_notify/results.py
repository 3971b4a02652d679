"""
Citizen Notify — Operation Results
==================================

What:  The value every model operation returns.
How:   `Success(value)` or `Failure(error)`. For lookups the success value is
       an Optional, giving three observable outcomes:

           Success(record)   found
           Success(None)     absent (not an error)
           Failure(error)    store / validation failure

Usage:
    result = await profile_model.find_one_profile_by_fiscal_code(fiscal_code)
    if isinstance(result, Failure):
        ...  # 500
    elif result.value is None:
        ...  # 404
    else:
        profile = result.value
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from citizen_notify.exceptions import CitizenNotifyError

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=CitizenNotifyError)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    def map(self, f: Callable[[T], U]) -> "Success[U]":
        return Success(f(self.value))

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure(Generic[E]):
    error: E

    @property
    def is_success(self) -> bool:
        return False

    def map(self, f: Callable) -> "Failure[E]":
        return self

    def unwrap(self):
        """Re-raise the carried error, for callers that prefer exceptions."""
        raise self.error


Result = Union[Success[T], Failure[E]]
