from __future__ import annotations

from typing import Iterable, Tuple


class CareerDataError(Exception):
    """Base class for user-correctable upload failures."""


class DecodeError(CareerDataError):
    pass


class ValidationError(CareerDataError):
    def __init__(self, missing: Iterable[str]):
        self.missing: Tuple[str, ...] = tuple(missing)
        super().__init__(f"Missing columns: {', '.join(self.missing)}")


class UnknownViewError(KeyError):
    def __init__(self, view: str):
        self.view = view
        super().__init__(view)

    def __str__(self) -> str:
        return f"Unknown view: {self.view}"


class NoDatasetError(LookupError):
    def __init__(self, view: str):
        self.view = view
        super().__init__(f"No data uploaded for {view}")
