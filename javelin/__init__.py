"""javelin - release publishing for Tauri desktop applications."""

__version__ = "0.4.0"
