"""
Run summary rendering and persistence.
"""

from .formatters import export_summary_json, format_summary_console, load_summary_json

__all__ = [
    'export_summary_json',
    'format_summary_console',
    'load_summary_json',
]
