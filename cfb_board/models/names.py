# cfb_board/models/names.py
"""Canonical team keys so rows from different CFBD endpoints join cleanly."""
from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Dict, Generic, List, Mapping, Optional, Set, TypeVar

logger = logging.getLogger("cfb.names")

T = TypeVar("T")

# normalized spelling -> canonical key
ALIASES: Dict[str, str] = {
    "MISSISSIPPI": "OLE MISS",
    "UNIVERSITY OF MISSISSIPPI": "OLE MISS",
    "MIAMI (FL)": "MIAMI",
    "MIAMI FL": "MIAMI",
    "MIAMI FLORIDA": "MIAMI",
    "MIAMI (OH)": "MIAMI OH",
    "MIAMI OHIO": "MIAMI OH",
    "TEXAS A & M": "TEXAS A&M",
    "TEXAS AM": "TEXAS A&M",
    "UCONN": "CONNECTICUT",
    "USC": "SOUTHERN CALIFORNIA",
    "SOUTHERN CAL": "SOUTHERN CALIFORNIA",
    "LOUISIANA STATE": "LSU",
    "BRIGHAM YOUNG": "BYU",
    "CENTRAL FLORIDA": "UCF",
    "TEXAS CHRISTIAN": "TCU",
    "SOUTHERN METHODIST": "SMU",
    "NEVADA LAS VEGAS": "UNLV",
    "UNIVERSITY OF ALABAMA AT BIRMINGHAM": "UAB",
    "TEXAS SAN ANTONIO": "UTSA",
    "UT SAN ANTONIO": "UTSA",
    "TEXAS EL PASO": "UTEP",
    "MASSACHUSETTS": "UMASS",
    "HAWAII RAINBOW WARRIORS": "HAWAII",
    "SAN JOSE STATE SPARTANS": "SAN JOSE STATE",
    "APP STATE": "APPALACHIAN STATE",
    "LOUISIANA LAFAYETTE": "LOUISIANA",
    "UL LAFAYETTE": "LOUISIANA",
    "LOUISIANA MONROE": "UL MONROE",
    "NC STATE": "NORTH CAROLINA STATE",
    "PITT": "PITTSBURGH",
    "OLE MISS REBELS": "OLE MISS",
}

_DROP = re.compile(r"[^A-Z0-9&() ]+")


def _validate_aliases(table: Mapping[str, str]) -> None:
    for key, target in table.items():
        if key == target:
            raise ValueError(f"alias maps to itself: {key}")
        if target in table:
            raise ValueError(f"alias chain: {key} -> {target} -> {table[target]}")


_validate_aliases(ALIASES)


def normalize_ascii(text: Optional[str]) -> str:
    if not text:
        return ""
    s = (
        unicodedata.normalize("NFKD", str(text))
        .encode("ascii", "ignore")
        .decode("ascii")
        .upper()
    )
    s = _DROP.sub("", s.replace("-", " ").replace(".", ""))
    return " ".join(s.split())


def canonical_team(name: Optional[str]) -> str:
    key = normalize_ascii(name)
    return ALIASES.get(key, key)


class TeamIndex(Generic[T]):
    """
    Rows keyed by numeric team id and canonical name.

    Misses are remembered so a response can report them instead of quietly
    defaulting to zeros.
    """

    def __init__(self, label: str = "rows") -> None:
        self.label = label
        self._by_key: Dict[str, T] = {}
        self._by_id: Dict[int, T] = {}
        self._missed: Set[str] = set()

    @classmethod
    def build(
        cls,
        rows: List[Dict[str, Any]],
        *,
        name_field: str = "team",
        id_field: Optional[str] = "teamId",
        label: str = "rows",
    ) -> "TeamIndex[Dict[str, Any]]":
        idx: TeamIndex[Dict[str, Any]] = cls(label)
        for row in rows or []:
            name = row.get(name_field)
            if name:
                idx._by_key[canonical_team(name)] = row
            tid = row.get(id_field) if id_field else None
            if isinstance(tid, int):
                idx._by_id[tid] = row
        return idx

    def add(self, name: str, row: T, team_id: Optional[int] = None) -> None:
        self._by_key[canonical_team(name)] = row
        if isinstance(team_id, int):
            self._by_id[team_id] = row

    def lookup(self, name: Optional[str], team_id: Optional[int] = None) -> Optional[T]:
        if isinstance(team_id, int) and team_id in self._by_id:
            return self._by_id[team_id]
        row = self._by_key.get(canonical_team(name))
        if row is None and name:
            if name not in self._missed:
                logger.warning("%s: no match for team %r", self.label, name)
            self._missed.add(name)
        return row

    def __len__(self) -> int:
        return len(self._by_key)

    @property
    def unmatched(self) -> List[str]:
        return sorted(self._missed)
