"""Shared type aliases used across the retrieval modules."""
from __future__ import annotations

from typing import Annotated, List

from pydantic import Field, StringConstraints

NonNegMoney = Annotated[float, Field(ge=0)]
NonNegWeight = Annotated[float, Field(ge=0)]
Lat = Annotated[float, Field(ge=-90, le=90)]
Lon = Annotated[float, Field(ge=-180, le=180)]
Rating = Annotated[float, Field(ge=0, le=5)]
PriceLevel = Annotated[int, Field(ge=0, le=4)]
Vector = List[float]
HttpURLStr = Annotated[
    str,
    StringConstraints(
        pattern=r"^https?://[\w\-./%?#=&]+$",
        strip_whitespace=True,
    ),
]
