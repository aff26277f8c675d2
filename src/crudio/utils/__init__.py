"""Utility functions for Crudio."""

from .model_io import load_model_from_json, model_from_dict, model_to_dict, save_model_to_json
from .schema_io import load_schema

__all__ = [
    "load_schema",
    "model_to_dict",
    "model_from_dict",
    "save_model_to_json",
    "load_model_from_json",
]
