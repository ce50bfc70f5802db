"""
Helpers for reports over a gazetteer of biodiversity institutions.

The gazetteer is a static table with one row per institution: an identifier and name, coordinates,
the kind of institution, which source list it came from, how it was geocoded, its address, and whether it sits inside a protected area.
Nothing here modifies the dataset, it's only filtered, joined and counted so it can be charted.

Charts are built as matplotlib.figure.Figure objects directly rather than through pyplot,
so rendering a report never depends on a GUI backend or leaks global figure state.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
from matplotlib.figure import Figure

REQUIRED_COLUMNS = [
    "id",
    "name",
    "latitude",
    "longitude",
    "type",
    "source",
    "geocode_method",
    "geocode_precision",
    "address",
    "city",
    "country",
    "protected_area",
    "protected_area_id",
]

UNKNOWN_CONTINENT = "Unknown"

_TRUE_STRINGS = {"true", "yes", "y", "t", "1"}


def _to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return False
    return str(value).strip().lower() in _TRUE_STRINGS


def _read_table(path: Union[str, Path], **kwargs) -> pd.DataFrame:
    # Only empty cells are missing: "NA" is Namibia in an ISO country column
    return pd.read_csv(path, keep_default_na=False, na_values=[""], **kwargs)


def load_gazetteer(path: Union[str, Path]) -> pd.DataFrame:
    df = _read_table(
        path, dtype={"id": str, "protected_area": str, "protected_area_id": str}
    )
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Gazetteer '{path}' is missing columns {missing}")
    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
    df["protected_area"] = df["protected_area"].map(_to_bool).astype(bool)
    return df


def load_continents(path: Union[str, Path]) -> pd.DataFrame:
    """Read a country -> continent lookup table for attach_continents()"""
    lookup = _read_table(path, dtype=str)
    if "country" not in lookup.columns or "continent" not in lookup.columns:
        raise ValueError(f"Continent lookup '{path}' needs 'country' and 'continent' columns")
    return lookup


def located(df: pd.DataFrame) -> pd.DataFrame:
    """Rows with usable coordinates"""
    lat = df["latitude"]
    lon = df["longitude"]
    mask = lat.between(-90, 90) & lon.between(-180, 180)
    return df[mask]


def filter_type(df: pd.DataFrame, *types: str) -> pd.DataFrame:
    return df[df["type"].isin(types)]


def attach_continents(df: pd.DataFrame, lookup: pd.DataFrame) -> pd.DataFrame:
    """Left join a country -> continent lookup table onto the gazetteer.

    Countries missing from the lookup get the continent 'Unknown'."""
    if "country" not in lookup.columns or "continent" not in lookup.columns:
        raise ValueError("Continent lookup needs 'country' and 'continent' columns")
    lookup = lookup[["country", "continent"]].drop_duplicates(subset="country")
    base = df.drop(columns=["continent"]) if "continent" in df.columns else df
    joined = base.merge(lookup, on="country", how="left", validate="many_to_one")
    joined["continent"] = joined["continent"].fillna(UNKNOWN_CONTINENT)
    return joined


def counts_by(df: pd.DataFrame, column: str, top: Optional[int] = None) -> pd.Series:
    counts = df[column].fillna("Unknown").value_counts()
    if top is not None:
        counts = counts.head(top)
    return counts


def protected_share(df: pd.DataFrame) -> float:
    if len(df) == 0:
        return 0.0
    return float(df["protected_area"].sum()) / len(df)


def density_grid(df: pd.DataFrame, cell_degrees: float = 1.0) -> np.ndarray:
    """Count institutions per lat/lon cell. Row 0 is the northernmost band, column 0 the westernmost."""
    if cell_degrees <= 0 or (180 / cell_degrees) != int(180 / cell_degrees):
        raise ValueError(f"cell_degrees={cell_degrees} must evenly divide 180")
    n_lat = int(180 / cell_degrees)
    n_lon = int(360 / cell_degrees)
    pts = located(df)
    grid, _, _ = np.histogram2d(
        pts["latitude"],
        pts["longitude"],
        bins=[n_lat, n_lon],
        range=[[-90, 90], [-180, 180]],
    )
    return np.flipud(grid)


def bar_chart(
    counts: pd.Series,
    title: str,
    xlabel: str,
    ylabel: str = "Institutions",
    figsize: Sequence[float] = (8, 4.5),
) -> Figure:
    fig = Figure(figsize=tuple(figsize))
    ax = fig.add_subplot()
    ax.bar([str(i) for i in counts.index], counts.values, color="#4c72b0")
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.tick_params(axis="x", labelrotation=45)
    fig.tight_layout()
    return fig


def density_map(
    grid: np.ndarray, title: str, figsize: Sequence[float] = (10, 5)
) -> Figure:
    fig = Figure(figsize=tuple(figsize))
    ax = fig.add_subplot()
    # Empty cells are masked so they show as background, not the lowest colour
    masked = np.ma.masked_where(grid == 0, grid)
    im = ax.imshow(
        masked,
        extent=(-180, 180, -90, 90),
        cmap="viridis",
        interpolation="nearest",
        aspect="auto",
    )
    fig.colorbar(im, ax=ax, label="Institutions per cell")
    ax.set_title(title)
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    return fig
