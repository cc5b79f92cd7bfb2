"""
Design-parameter models for channels, culverts and pressure pipes.

These frozen data classes are the immutable input bundles handed to the
calculation modules. Each one validates itself into field-tagged issues and
can be built from a plain mapping loaded from JSON.
"""

from __future__ import annotations

from .base import Validatable
from .channel import ChannelInputs
from .culvert import CulvertParameters, CulvertSize, FishPassageCriteria, RatingCurvePoint
from .pipe import PipeFitting, PipeSize, PipeSizingInputs

__all__: list[str] = [
    "Validatable",
    "ChannelInputs",
    "CulvertParameters",
    "CulvertSize",
    "FishPassageCriteria",
    "RatingCurvePoint",
    "PipeFitting",
    "PipeSize",
    "PipeSizingInputs",
]
