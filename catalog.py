"""
catalog.py — in-memory product catalog.

The catalog is loaded once from a spreadsheet (or CSV) and is read-only
afterwards. Heterogeneous column names are mapped onto the fixed
ProductRecord shape at load time:

  primary name  ←  prdlstNm | name | product_name | primary_name | 제품명 | 상품명
  aliases       ←  Alias | aliases | 별칭                (comma-separated)
  image         ←  imgurl1 | image_url | imageUrl | img_url | 이미지
  allergens     ←  allergy | allergens | 알레르기       (comma-separated)

A table with no name column raises CatalogSchemaError. Rows whose name is
blank are skipped; missing optional fields default to empty values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional

import pandas as pd

logger = logging.getLogger(__name__)

_NAME_COLUMNS     = ("prdlstnm", "name", "product_name", "primary_name", "제품명", "상품명")
_ALIAS_COLUMNS    = ("alias", "aliases", "별칭")
_IMAGE_COLUMNS    = ("imgurl1", "image_url", "imageurl", "img_url", "이미지")
_ALLERGEN_COLUMNS = ("allergy", "allergens", "알레르기")


class CatalogSchemaError(ValueError):
    """Raised when a catalog table cannot be mapped onto ProductRecord."""


@dataclass(frozen=True)
class ProductRecord:
    """One catalog entry."""
    primary_name: str
    aliases: tuple[str, ...] = ()
    image_url: Optional[str] = None
    allergens: tuple[str, ...] = ()     # ordered, de-duplicated

    def __post_init__(self) -> None:
        if not self.primary_name:
            raise CatalogSchemaError("ProductRecord.primary_name must not be empty")

    @property
    def allergen_str(self) -> str:
        return ", ".join(self.allergens)


class CatalogIndex:
    """
    Immutable, queryable view over ProductRecords.

    Built once per process and shared by reference; nothing mutates it after
    construction, so it can be read from any request without locking.
    """

    def __init__(self, records: Iterable[ProductRecord]) -> None:
        self._records: tuple[ProductRecord, ...] = tuple(records)
        self._by_name: dict[str, ProductRecord] = {r.primary_name: r for r in self._records}
        self._names: tuple[tuple[str, ProductRecord], ...] = tuple(
            (name, record)
            for record in self._records
            for name in (record.primary_name, *record.aliases)
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "CatalogIndex":
        return cls(load_catalog(path))

    def all_records(self) -> tuple[ProductRecord, ...]:
        """Every record, in source order."""
        return self._records

    def names_with_aliases(self) -> tuple[tuple[str, ProductRecord], ...]:
        """(name, record) for every primary name and every alias, flattened."""
        return self._names

    def get(self, primary_name: str) -> Optional[ProductRecord]:
        return self._by_name.get(primary_name)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ProductRecord]:
        return iter(self._records)


# ── Schema mapping ─────────────────────────────────────────────────────────────

def _cell(value: object) -> str:
    """Stringify a spreadsheet cell. None / NaN → ""."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _split_list(value: object) -> tuple[str, ...]:
    """Split a comma-separated cell into trimmed, non-empty, unique items."""
    items: dict[str, None] = {}
    for part in _cell(value).split(","):
        part = part.strip()
        if part:
            items[part] = None
    return tuple(items)


def _find_column(columns: Iterable[str], choices: tuple[str, ...]) -> Optional[str]:
    lookup = {str(c).strip().lower(): c for c in columns}
    for choice in choices:
        if choice in lookup:
            return lookup[choice]
    return None


def records_from_rows(rows: Iterable[Mapping[str, object]]) -> list[ProductRecord]:
    """
    Map raw table rows onto ProductRecords.

    The column mapping is decided from the first row's keys (all rows of a
    table share a header). Raises CatalogSchemaError if no name column exists.
    """
    rows = list(rows)
    if not rows:
        return []

    columns = list(rows[0].keys())
    name_col = _find_column(columns, _NAME_COLUMNS)
    if name_col is None:
        raise CatalogSchemaError(
            f"No product-name column found. Expected one of {_NAME_COLUMNS}, got {columns}"
        )
    alias_col    = _find_column(columns, _ALIAS_COLUMNS)
    image_col    = _find_column(columns, _IMAGE_COLUMNS)
    allergen_col = _find_column(columns, _ALLERGEN_COLUMNS)

    records: list[ProductRecord] = []
    seen: set[str] = set()
    skipped = 0

    for i, row in enumerate(rows):
        name = _cell(row.get(name_col))
        if not name:
            skipped += 1
            logger.debug("Row %d skipped: no product name", i)
            continue
        if name in seen:
            logger.warning("Duplicate product name '%s' at row %d — keeping the first", name, i)
            continue
        seen.add(name)

        records.append(ProductRecord(
            primary_name=name,
            aliases=_split_list(row.get(alias_col)) if alias_col else (),
            image_url=(_cell(row.get(image_col)) or None) if image_col else None,
            allergens=_split_list(row.get(allergen_col)) if allergen_col else (),
        ))

    if skipped:
        logger.info("Skipped %d catalog row(s) without a product name", skipped)
    return records


# ── Loading ────────────────────────────────────────────────────────────────────

def load_catalog(path: str | Path) -> list[ProductRecord]:
    """
    Read the CSV, or the first sheet of the .xlsx workbook, at path and map it
    onto ProductRecords. Any other extension raises ValueError.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix == ".xlsx":
        df = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported catalog format '{path.suffix}': use .xlsx or .csv")

    records = records_from_rows(df.to_dict(orient="records"))
    logger.info("Loaded %d product(s) from %s", len(records), path)
    return records
