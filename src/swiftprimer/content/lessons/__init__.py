"""Markdown lessons shipped with the package, one file per topic."""
