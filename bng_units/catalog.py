"""
Reference catalog for the unit calculator.

Maps a habitat (broad habitat + habitat type) or a hedgerow (label) to the
static attributes the metric needs: distinctiveness, condition scores,
years to target condition and technical difficulty.

The catalog is read from a set of tables, as CSV files or as sheets of one
Excel workbook. All table and column names match the bundled CSV files in
bng_units/data:

    habitats                     broad_habitat, habitat_type, distinctiveness,
                                 creation_difficulty, enhancement_difficulty,
                                 irreplaceable, record_kinds
    habitat_conditions           broad_habitat, habitat_type, condition,
                                 condition_score, creation_years
    habitat_enhancement_years    broad_habitat, habitat_type, pathway, years
    habitat_type_changes         broad_habitat, habitat_type,
                                 target_broad_habitat, target_habitat_type, years
    hedgerows                    label, distinctiveness, creation_difficulty,
                                 enhancement_difficulty
    hedgerow_creation_years      label, condition, years
    hedgerow_enhancement_years   label, pathway, years
    hedgerow_type_changes        label, target, years

Malformed data raises CatalogError when the catalog loads, never later
inside a calculation.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Optional, Tuple

import numpy as np
import pandas as pd

from .config import get_settings
from .tables import (
    DIFFICULTY_MULTIPLIERS,
    DISTINCTIVENESS_SCORES,
    HEDGEROW_CONDITION_SCORES,
    Condition,
    Difficulty,
    Distinctiveness,
    parse_difficulty,
    parse_distinctiveness,
)
from .years import TargetYears, parse_years

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

STAGES = ("baseline", "creation", "enhancement")

REQUIRED_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "habitats": ("broad_habitat", "habitat_type", "distinctiveness",
                 "creation_difficulty", "enhancement_difficulty"),
    "habitat_conditions": ("broad_habitat", "habitat_type", "condition",
                           "condition_score", "creation_years"),
    "habitat_enhancement_years": ("broad_habitat", "habitat_type", "pathway", "years"),
    "habitat_type_changes": ("broad_habitat", "habitat_type",
                             "target_broad_habitat", "target_habitat_type", "years"),
    "hedgerows": ("label", "distinctiveness", "creation_difficulty", "enhancement_difficulty"),
    "hedgerow_creation_years": ("label", "condition", "years"),
    "hedgerow_enhancement_years": ("label", "pathway", "years"),
    "hedgerow_type_changes": ("label", "target", "years"),
}

# Tables that may be left out; a catalog without them has no such pathways
OPTIONAL_TABLES = {
    "habitat_enhancement_years",
    "habitat_type_changes",
    "hedgerows",
    "hedgerow_creation_years",
    "hedgerow_enhancement_years",
    "hedgerow_type_changes",
}


class CatalogError(RuntimeError):
    """Reference data is missing or malformed."""


# ------------- text helpers -------------
def clean_text(x) -> str:
    """Clean and normalize text"""
    if x is None or (isinstance(x, float) and (np.isnan(x) or np.isinf(x))):
        return ""
    return re.sub(r"\s+", " ", str(x).strip())


def canon(s: str) -> str:
    """Canonicalize string for comparison"""
    s = clean_text(s).lower().replace("–", "-").replace("—", "-")
    return re.sub(r"[^a-z0-9]+", "_", s).strip("_")


def habitat_label(broad_habitat: str, habitat_type: str) -> str:
    return f"{clean_text(broad_habitat)} - {clean_text(habitat_type)}"


def pathway_label(from_condition, to_condition) -> str:
    """Enhancement pathway key, e.g. "Poor to Moderate"."""
    return f"{_condition_text(from_condition)} to {_condition_text(to_condition)}"


def _condition_text(condition) -> str:
    return condition.value if isinstance(condition, Condition) else clean_text(condition)


_CONDITIONS_BY_CANON = {canon(c.value): c for c in Condition}


def parse_condition(value) -> Condition:
    condition = _CONDITIONS_BY_CANON.get(canon(value))
    if condition is None:
        raise ValueError(f"Unknown condition: {value!r}")
    return condition


def parse_irreplaceable(value) -> Optional[bool]:
    """Yes / No / blank -> True / False / None (unset, either flag accepted)."""
    text = clean_text(value).lower()
    if text in ("", "nan", "none"):
        return None
    if text in ("yes", "y", "true", "1"):
        return True
    if text in ("no", "n", "false", "0"):
        return False
    raise ValueError(f"Invalid irreplaceable flag: {value!r}")


# ------------- reference objects -------------
@dataclass(frozen=True)
class HabitatReference:
    broad_habitat: str
    habitat_type: str
    distinctiveness: Distinctiveness
    condition_scores: Dict[Condition, float]
    creation_years: Dict[Condition, TargetYears]
    creation_difficulty: Difficulty
    enhancement_difficulty: Difficulty
    enhancement_years: Dict[str, TargetYears] = field(default_factory=dict)
    type_change_years: Dict[str, TargetYears] = field(default_factory=dict)
    irreplaceable: Optional[bool] = None
    stages: FrozenSet[str] = frozenset(STAGES)

    @property
    def label(self) -> str:
        return habitat_label(self.broad_habitat, self.habitat_type)

    @property
    def distinctiveness_score(self) -> float:
        return DISTINCTIVENESS_SCORES[self.distinctiveness]

    @property
    def creation_difficulty_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.creation_difficulty]

    @property
    def enhancement_difficulty_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.enhancement_difficulty]

    @property
    def conditions(self) -> Tuple[Condition, ...]:
        return tuple(self.condition_scores)

    def allows(self, stage: str) -> bool:
        return stage in self.stages


@dataclass(frozen=True)
class HedgerowReference:
    label: str
    distinctiveness: Distinctiveness
    creation_years: Dict[Condition, TargetYears]
    creation_difficulty: Difficulty
    enhancement_difficulty: Difficulty
    enhancement_years: Dict[str, TargetYears] = field(default_factory=dict)
    type_change_years: Dict[str, TargetYears] = field(default_factory=dict)

    @property
    def distinctiveness_score(self) -> float:
        return DISTINCTIVENESS_SCORES[self.distinctiveness]

    @property
    def creation_difficulty_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.creation_difficulty]

    @property
    def enhancement_difficulty_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.enhancement_difficulty]

    @property
    def conditions(self) -> Tuple[Condition, ...]:
        """A hedgerow can only take the conditions it can be created in."""
        return tuple(self.creation_years)

    @property
    def condition_scores(self) -> Dict[Condition, float]:
        return {c: HEDGEROW_CONDITION_SCORES[c] for c in self.conditions}


# ------------- catalog -------------
class ReferenceCatalog:
    """Read-only lookup of habitat and hedgerow reference data."""

    def __init__(self, habitats: Dict[Tuple[str, str], HabitatReference],
                 hedgerows: Dict[str, HedgerowReference], source: str = ""):
        self._habitats = dict(habitats)
        self._hedgerows = dict(hedgerows)
        self.source = source

    def __repr__(self) -> str:
        return (f"ReferenceCatalog({len(self._habitats)} habitats, "
                f"{len(self._hedgerows)} hedgerows, source={self.source!r})")

    def lookup_habitat(self, broad_habitat: str, habitat_type: str) -> Optional[HabitatReference]:
        return self._habitats.get((canon(broad_habitat), canon(habitat_type)))

    def lookup_hedgerow(self, label: str) -> Optional[HedgerowReference]:
        return self._hedgerows.get(canon(label))

    def habitats(self) -> Iterator[HabitatReference]:
        return iter(self._habitats.values())

    def hedgerows(self) -> Iterator[HedgerowReference]:
        return iter(self._hedgerows.values())

    # ---- constructors ----
    @classmethod
    def from_frames(cls, tables: Dict[str, pd.DataFrame], source: str = "frames") -> "ReferenceCatalog":
        """
        Build a catalog from a dict of DataFrames keyed by table name.

        Raises:
            CatalogError: if a table or column is missing or a value is invalid
        """
        try:
            frames = _prepare_tables(tables)
            habitats = _build_habitats(frames)
            hedgerows = _build_hedgerows(frames)
        except CatalogError as e:
            logger.error(f"Invalid reference catalog from {source}: {e}")
            raise
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Invalid reference catalog from {source}: {e}")
            raise CatalogError(f"Invalid reference catalog from {source}: {e}") from e

        logger.info(f"Loaded reference catalog from {source}: "
                    f"{len(habitats)} habitats, {len(hedgerows)} hedgerows")
        return cls(habitats, hedgerows, source=source)

    @classmethod
    def from_csv_dir(cls, path) -> "ReferenceCatalog":
        """Load every <table>.csv found in a directory."""
        directory = Path(path)
        if not directory.is_dir():
            logger.error(f"Catalog directory not found: {directory}")
            raise CatalogError(f"Catalog directory not found: {directory}")

        tables = {}
        for name in REQUIRED_COLUMNS:
            csv_path = directory / f"{name}.csv"
            if not csv_path.exists():
                continue
            try:
                tables[name] = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
            except (OSError, pd.errors.ParserError, UnicodeDecodeError) as e:
                logger.error(f"Failed to read {csv_path}: {e}")
                raise CatalogError(f"Failed to read {csv_path}: {e}") from e
        return cls.from_frames(tables, source=str(directory))

    @classmethod
    def from_excel(cls, path) -> "ReferenceCatalog":
        """Load a workbook with one sheet per table (sheet names matched loosely)."""
        try:
            xls = pd.ExcelFile(path, engine="openpyxl")
            existing = {canon(s): s for s in xls.sheet_names}
            tables = {}
            for name in REQUIRED_COLUMNS:
                sheet = existing.get(canon(name))
                if sheet is None:
                    continue
                tables[name] = pd.read_excel(xls, sheet_name=sheet, dtype=str, keep_default_na=False)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read catalog workbook {path}: {e}")
            raise CatalogError(f"Failed to read catalog workbook {path}: {e}") from e
        return cls.from_frames(tables, source=str(path))


@lru_cache()
def load_default_catalog() -> ReferenceCatalog:
    """
    Catalog used when a caller does not pass one.

    Settings decide the source: catalog_workbook, then catalog_dir,
    then the CSV data bundled with the package.
    """
    settings = get_settings()
    if settings.catalog_workbook:
        return ReferenceCatalog.from_excel(settings.catalog_workbook)
    if settings.catalog_dir:
        return ReferenceCatalog.from_csv_dir(settings.catalog_dir)
    return ReferenceCatalog.from_csv_dir(DATA_DIR)


# ------------- table parsing -------------
def _prepare_tables(tables: Dict[str, pd.DataFrame]) -> Dict[str, pd.DataFrame]:
    frames = {}
    for name, columns in REQUIRED_COLUMNS.items():
        df = tables.get(name)
        if df is None:
            if name not in OPTIONAL_TABLES:
                raise CatalogError(f"Missing table: {name}")
            df = pd.DataFrame(columns=list(columns))
        df = df.copy()
        df.columns = [canon(c) for c in df.columns]
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise CatalogError(f"Table {name} is missing columns: {', '.join(missing)}")
        for col in df.columns:
            df[col] = df[col].map(clean_text)
        # Drop fully blank rows left by spreadsheets
        df = df[(df[list(columns)] != "").any(axis=1)]
        frames[name] = df.reset_index(drop=True)
    return frames


def _parse_stages(value) -> FrozenSet[str]:
    text = clean_text(value)
    if not text:
        return frozenset(STAGES)
    stages = frozenset(canon(part) for part in re.split(r"[;,|]", text) if canon(part))
    unknown = stages - set(STAGES)
    if unknown:
        raise ValueError(f"Unknown record kinds: {', '.join(sorted(unknown))}")
    return stages


def _habitat_key(broad_habitat, habitat_type) -> Tuple[str, str]:
    return canon(broad_habitat), canon(habitat_type)


def _build_habitats(frames: Dict[str, pd.DataFrame]) -> Dict[Tuple[str, str], HabitatReference]:
    scores: Dict[Tuple[str, str], Dict[Condition, float]] = {}
    creation: Dict[Tuple[str, str], Dict[Condition, TargetYears]] = {}
    for row in frames["habitat_conditions"].itertuples(index=False):
        key = _habitat_key(row.broad_habitat, row.habitat_type)
        condition = parse_condition(row.condition)
        scores.setdefault(key, {})[condition] = float(row.condition_score)
        creation.setdefault(key, {})[condition] = parse_years(row.creation_years)

    enhancement: Dict[Tuple[str, str], Dict[str, TargetYears]] = {}
    for row in frames["habitat_enhancement_years"].itertuples(index=False):
        key = _habitat_key(row.broad_habitat, row.habitat_type)
        from_condition, _, to_condition = row.pathway.partition(" to ")
        pathway = pathway_label(parse_condition(from_condition), parse_condition(to_condition))
        enhancement.setdefault(key, {})[pathway] = parse_years(row.years)

    labels: Dict[Tuple[str, str], str] = {}
    rows = []
    for row in frames["habitats"].itertuples(index=False):
        key = _habitat_key(row.broad_habitat, row.habitat_type)
        if key in labels:
            raise CatalogError(f"Duplicate habitat: {habitat_label(row.broad_habitat, row.habitat_type)}")
        labels[key] = habitat_label(row.broad_habitat, row.habitat_type)
        rows.append((key, row))

    type_changes: Dict[Tuple[str, str], Dict[str, TargetYears]] = {}
    for row in frames["habitat_type_changes"].itertuples(index=False):
        key = _habitat_key(row.broad_habitat, row.habitat_type)
        target = _habitat_key(row.target_broad_habitat, row.target_habitat_type)
        if target not in labels:
            raise CatalogError(
                f"Type change target not in catalog: "
                f"{habitat_label(row.target_broad_habitat, row.target_habitat_type)}"
            )
        type_changes.setdefault(key, {})[labels[target]] = parse_years(row.years)

    habitats = {}
    for key, row in rows:
        if key not in scores:
            raise CatalogError(f"No conditions for habitat: {labels[key]}")
        habitats[key] = HabitatReference(
            broad_habitat=row.broad_habitat,
            habitat_type=row.habitat_type,
            distinctiveness=parse_distinctiveness(row.distinctiveness),
            condition_scores=scores[key],
            creation_years=creation[key],
            creation_difficulty=parse_difficulty(row.creation_difficulty),
            enhancement_difficulty=parse_difficulty(row.enhancement_difficulty),
            enhancement_years=enhancement.get(key, {}),
            type_change_years=type_changes.get(key, {}),
            irreplaceable=parse_irreplaceable(getattr(row, "irreplaceable", "")),
            stages=_parse_stages(getattr(row, "record_kinds", "")),
        )
    return habitats


def _build_hedgerows(frames: Dict[str, pd.DataFrame]) -> Dict[str, HedgerowReference]:
    creation: Dict[str, Dict[Condition, TargetYears]] = {}
    for row in frames["hedgerow_creation_years"].itertuples(index=False):
        condition = parse_condition(row.condition)
        if condition not in HEDGEROW_CONDITION_SCORES:
            raise CatalogError(f"Hedgerow condition must be Good, Moderate or Poor: {row.condition!r}")
        creation.setdefault(canon(row.label), {})[condition] = parse_years(row.years)

    enhancement: Dict[str, Dict[str, TargetYears]] = {}
    for row in frames["hedgerow_enhancement_years"].itertuples(index=False):
        from_condition, _, to_condition = row.pathway.partition(" to ")
        pathway = pathway_label(parse_condition(from_condition), parse_condition(to_condition))
        enhancement.setdefault(canon(row.label), {})[pathway] = parse_years(row.years)

    labels = {canon(label): label for label in frames["hedgerows"]["label"]}
    type_changes: Dict[str, Dict[str, TargetYears]] = {}
    for row in frames["hedgerow_type_changes"].itertuples(index=False):
        target = canon(row.target)
        if target not in labels:
            raise CatalogError(f"Type change target not in catalog: {row.target}")
        type_changes.setdefault(canon(row.label), {})[labels[target]] = parse_years(row.years)

    hedgerows = {}
    for row in frames["hedgerows"].itertuples(index=False):
        key = canon(row.label)
        if key in hedgerows:
            raise CatalogError(f"Duplicate hedgerow: {row.label}")
        if key not in creation:
            raise CatalogError(f"No creation years for hedgerow: {row.label}")
        hedgerows[key] = HedgerowReference(
            label=row.label,
            distinctiveness=parse_distinctiveness(row.distinctiveness),
            creation_years=creation[key],
            creation_difficulty=parse_difficulty(row.creation_difficulty),
            enhancement_difficulty=parse_difficulty(row.enhancement_difficulty),
            enhancement_years=enhancement.get(key, {}),
            type_change_years=type_changes.get(key, {}),
        )
    return hedgerows
