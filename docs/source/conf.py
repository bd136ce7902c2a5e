import sys
from pathlib import Path

# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# Ensure the `startsql` module is importable
sys.path.insert(0, Path(__file__).parents[2].resolve().as_posix())

# -- Project information -----------------------------------------------------

project = "startsql"
copyright = "2024, Mikołaj Kuranowski"
author = "Mikołaj Kuranowski"

# -- General configuration ---------------------------------------------------

extensions = ["sphinx.ext.autodoc"]
autodoc_default_options = {
    "members": True,
    "undoc-members": True,
    "special-members": "__enter__,__exit__,__call__",
    "show-inheritance": True,
}
autodoc_member_order = "groupwise"

templates_path = []
exclude_patterns = []

# -- Options for HTML output -------------------------------------------------

html_theme = "furo"
