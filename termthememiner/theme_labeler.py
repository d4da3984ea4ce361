"""
theme_labeler.py

Manual, post-hoc labels for theme clusters.

Clustering only produces integer ids. After inspecting the member terms
(e.g. ``ClusterResult.clusters()``), an analyst supplies a mapping
cluster id → label; this module validates that mapping and applies it to
result tables. Labels are never inferred from the data.

    labels = label_themes(
        core.clusters.clusters().keys(),
        {1: "Historic", 2: {"title": "Countryside", "description": "walks, hills"}},
    )
    labels.rename(core.theme_document)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Union

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import InvalidParameterError


class ThemeLabelModel(BaseModel):
    """
    Human-supplied label for a single theme.

    Attributes
    ----------
    title:
        Short name for the theme ("Historic", "Coast & Beaches", ...).
    description:
        Optional longer note on what the theme covers.
    """

    title: str = Field(..., description="Short human-readable theme name.")
    description: str = Field("", description="Optional free-text description.")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


@dataclass
class ThemeLabelingResult:
    """
    Validated labels for every theme id.

    Attributes
    ----------
    labels_by_theme:
        Theme id → ThemeLabelModel (unlabelled ids get ``"Theme <id>"``).
    theme_name_map:
        Theme id → title, convenient for plots and tables.
    """

    labels_by_theme: Dict[int, ThemeLabelModel]
    theme_name_map: Dict[int, str]

    def rename(self, df: pd.DataFrame, axis: Union[str, int] = "index") -> pd.DataFrame:
        """Return a copy of `df` with theme ids on `axis` replaced by titles."""
        return df.rename(self.theme_name_map, axis=axis)


def label_themes(
    theme_ids: Iterable[int],
    labels: Mapping[int, Union[str, Mapping[str, Any], ThemeLabelModel]],
) -> ThemeLabelingResult:
    """
    Validate a manual theme id → label mapping.

    Parameters
    ----------
    theme_ids:
        All theme ids produced by clustering.
    labels:
        Theme id → title string, ``{"title": ..., "description": ...}`` dict,
        or ThemeLabelModel. May cover only some of the themes.

    Raises
    ------
    InvalidParameterError
        A label refers to a theme id that does not exist, or fails
        validation (e.g. blank title).
    """
    ids = sorted(int(t) for t in theme_ids)
    unknown = sorted(int(t) for t in labels if int(t) not in set(ids))
    if unknown:
        raise InvalidParameterError(f"Labels given for unknown theme id(s): {unknown}")

    by_id = {int(k): v for k, v in labels.items()}
    labels_by_theme: Dict[int, ThemeLabelModel] = {}

    for theme_id in ids:
        raw = by_id.get(theme_id)
        try:
            if raw is None:
                label = ThemeLabelModel(title=f"Theme {theme_id}")
            elif isinstance(raw, ThemeLabelModel):
                label = raw
            elif isinstance(raw, str):
                label = ThemeLabelModel(title=raw)
            else:
                label = ThemeLabelModel.model_validate(dict(raw))
        except ValidationError as e:
            raise InvalidParameterError(
                f"Invalid label for theme {theme_id}: {e.errors()[0]['msg']}"
            ) from e
        labels_by_theme[theme_id] = label

    return ThemeLabelingResult(
        labels_by_theme=labels_by_theme,
        theme_name_map={tid: lab.title for tid, lab in labels_by_theme.items()},
    )
