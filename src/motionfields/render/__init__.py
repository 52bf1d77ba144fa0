"""Rendering: color correction, grain and the gradient field compositor."""

from motionfields.render.field import BandSprite, FieldConfig, FieldRenderer

__all__ = ["BandSprite", "FieldConfig", "FieldRenderer"]
