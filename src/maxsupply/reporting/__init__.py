"""Result export."""

from .export import export_csv, export_json, projection_to_dataframe

__all__ = ["projection_to_dataframe", "export_csv", "export_json"]
