from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from career_core.headers import normalize_header
from career_core.slots import SlotFamily


@dataclass(frozen=True)
class Requirement:
    """One required column, or a group of interchangeable alternatives."""

    alternatives: Tuple[str, ...]

    @property
    def label(self) -> str:
        return " or ".join(self.alternatives)

    def satisfied_by(self, observed: Iterable[str]) -> bool:
        seen = set(observed)
        return any(name in seen for name in self.alternatives)


def required(name: str) -> Requirement:
    return Requirement((normalize_header(name),))


def any_of(*names: str) -> Requirement:
    return Requirement(tuple(normalize_header(n) for n in names))


@dataclass(frozen=True)
class RequiredColumnSpec:
    requirements: Tuple[Requirement, ...] = ()

    @classmethod
    def of(cls, *items: Union[str, Sequence[str], Requirement]) -> "RequiredColumnSpec":
        reqs: List[Requirement] = []
        for item in items:
            if isinstance(item, Requirement):
                reqs.append(item)
            elif isinstance(item, str):
                reqs.append(required(item))
            else:
                reqs.append(any_of(*item))
        return cls(tuple(reqs))

    def column_names(self) -> List[str]:
        return [name for req in self.requirements for name in req.alternatives]


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    missing: Tuple[str, ...] = ()


def observed_columns(rows: Union[pd.DataFrame, Sequence[Mapping[str, object]]]) -> List[str]:
    if isinstance(rows, pd.DataFrame):
        return [str(c) for c in rows.columns]
    if not rows:
        return []
    return [str(k) for k in rows[0].keys()]


def validate(rows: Union[pd.DataFrame, Sequence[Mapping[str, object]]], spec: RequiredColumnSpec) -> ValidationResult:
    """Check every requirement against the observed columns and report all that are unmet."""
    observed = observed_columns(rows)
    missing = tuple(req.label for req in spec.requirements if not req.satisfied_by(observed))
    return ValidationResult(ok=not missing, missing=missing)


@dataclass(frozen=True)
class ViewSchema:
    """Column contract for one analysis view.

    `fixed_columns` are the named fields the view knows about; anything else in an
    upload lands in the extras bag (`extra_columns`), which is how the company view
    discovers its department columns. `header_aliases` maps a canonical column to
    the alternative spellings accepted for it on upload.
    """

    name: str
    title: str
    spec: RequiredColumnSpec
    template: Tuple[str, ...]
    slots: Optional[SlotFamily] = None
    fixed_columns: Tuple[str, ...] = ()
    numeric_columns: Tuple[str, ...] = ()
    category_filters: Tuple[str, ...] = ()
    range_field: Optional[str] = None
    status_field: Optional[str] = None
    status_mode: str = "label"
    template_name: str = "template.csv"
    extras_excluded: Tuple[str, ...] = field(default_factory=tuple)
    header_aliases: Dict[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)

    def alias_renames(self, columns: Iterable[str]) -> Dict[str, str]:
        """Column renames that bring aliased upload headers onto their canonical names.

        Matching is case-insensitive after header normalization. A canonical name
        already present in the upload is never overwritten, and when several
        aliases of one column appear only the first is renamed.
        """
        if not self.header_aliases:
            return {}
        lookup: Dict[str, str] = {}
        for canonical, aliases in self.header_aliases.items():
            for alias in (canonical, *aliases):
                lookup.setdefault(normalize_header(alias).casefold(), canonical)

        columns = [str(c) for c in columns]
        taken = set(columns)
        renames: Dict[str, str] = {}
        for col in columns:
            target = lookup.get(normalize_header(col).casefold())
            if target is None or target == col or target in taken:
                continue
            renames[col] = target
            taken.add(target)
        return renames

    def validate(self, rows: Union[pd.DataFrame, Sequence[Mapping[str, object]]]) -> ValidationResult:
        return validate(rows, self.spec)

    def known_columns(self) -> List[str]:
        names = list(self.fixed_columns) + self.spec.column_names()
        if self.slots is not None:
            names += self.slots.headers()
        return names

    def extra_columns(self, columns: Iterable[str]) -> List[str]:
        excluded = set(self.extras_excluded) if self.extras_excluded else set(self.known_columns())
        return [c for c in columns if c not in excluded]
