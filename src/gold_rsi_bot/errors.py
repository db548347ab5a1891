from __future__ import annotations

from typing import Optional


class CycleError(RuntimeError):
    """Base for failures raised by one fetch/compute/record cycle."""


class FetchError(CycleError):
    pass


class ComputeError(CycleError):
    def __init__(self, message: str, *, current_price: Optional[float] = None) -> None:
        super().__init__(message)
        self.current_price = current_price


class PersistenceError(CycleError):
    pass
