"""
Utilities
=========

Media helpers for the Creative Studio.

Project storage and import/export depend on the workflow models and are
imported from their own modules:

    from creative_studio.utils.storage import ProjectStore
    from creative_studio.utils.project_io import export_project, import_project
"""

from .media import (
    is_data_uri,
    is_remote_url,
    parse_data_uri,
    to_data_uri,
    file_to_data_uri,
    save_data_uri,
    fetch_as_data_uri,
)

__all__ = [
    "is_data_uri",
    "is_remote_url",
    "parse_data_uri",
    "to_data_uri",
    "file_to_data_uri",
    "save_data_uri",
    "fetch_as_data_uri",
]
