from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from career_core.coerce import as_text, is_blank, to_number
from career_core.headers import normalize_header


@dataclass(frozen=True)
class SlotRecord:
    index: int
    value: str
    attributes: Dict[str, object] = field(default_factory=dict)

    def get(self, name: str, default: object = None) -> object:
        return self.attributes.get(name, default)


@dataclass(frozen=True)
class SlotFamily:
    """A numbered column group such as `Company 1..10` with co-indexed attributes.

    Templates use `{i}` for the slot index, e.g. `"Salary (Company {i})"`.
    """

    name: str
    primary: str
    attributes: Tuple[Tuple[str, str], ...] = ()
    max_slots: int = 10
    numeric: Tuple[str, ...] = ()

    @property
    def attribute_names(self) -> List[str]:
        return [attr for attr, _ in self.attributes]

    def column(self, template: str, index: int) -> str:
        return normalize_header(template.format(i=index))

    def primary_column(self, index: int) -> str:
        return self.column(self.primary, index)

    def slot_columns(self, index: int) -> List[str]:
        return [self.primary_column(index)] + [self.column(t, index) for _, t in self.attributes]

    def headers(self, *, interleave: bool = True, slots: Optional[int] = None) -> List[str]:
        count = self.max_slots if slots is None else slots
        indices = range(1, count + 1)
        if interleave:
            return [c for i in indices for c in self.slot_columns(i)]
        templates = [self.primary] + [t for _, t in self.attributes]
        return [self.column(t, i) for t in templates for i in indices]


def expand_slots(row: Mapping[str, object], family: SlotFamily) -> List[SlotRecord]:
    """Populated slots of one row, in slot order; blank primaries are skipped."""
    records: List[SlotRecord] = []
    for i in range(1, family.max_slots + 1):
        primary = row.get(family.primary_column(i))
        if is_blank(primary):
            continue
        attrs: Dict[str, object] = {}
        for attr, template in family.attributes:
            raw = row.get(family.column(template, i), "")
            attrs[attr] = to_number(raw) if attr in family.numeric else as_text(raw)
        records.append(SlotRecord(index=i, value=normalize_header(as_text(primary)), attributes=attrs))
    return records


def explode_slots(frame: pd.DataFrame, family: SlotFamily, *, carry: Sequence[str] = ()) -> pd.DataFrame:
    """Long form of a slot family: one row per populated slot, keyed by row position."""
    columns = ["_row", "slot", family.name] + family.attribute_names + [c for c in carry]
    records: List[Dict[str, object]] = []
    for pos, row in enumerate(frame.to_dict(orient="records")):
        for slot in expand_slots(row, family):
            rec: Dict[str, object] = {"_row": pos, "slot": slot.index, family.name: slot.value}
            rec.update(slot.attributes)
            for col in carry:
                rec[col] = row.get(col, "")
            records.append(rec)
    return pd.DataFrame(records, columns=columns)


COMPANY_OFFERS = SlotFamily(
    name="company",
    primary="Company {i}",
    attributes=(
        ("salary", "Salary (Company {i})"),
        ("organized_by", "Organized By (Company {i})"),
        ("offer_letter", "Offer Letter Link (Company {i})"),
        ("join_letter", "Join Letter Link (Company {i})"),
    ),
    max_slots=10,
    numeric=("salary",),
)

COMPANY_OFFERS_BRIEF = SlotFamily(
    name="company",
    primary="Company {i}",
    attributes=(
        ("salary", "Salary (Company {i})"),
        ("organized_by", "Organized By (Company {i})"),
    ),
    max_slots=10,
    numeric=("salary",),
)
