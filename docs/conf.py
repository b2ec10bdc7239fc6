# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sphinx configuration for the tableplan documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

project = "tableplan"
copyright = "2025, Softwell S.r.l."
author = "Genropy Team"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

# Google-style docstrings only
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "undoc-members": True,
}
autodoc_typehints = "description"
autodoc_mock_imports = ["psycopg", "psycopg_pool"]

myst_enable_extensions = ["colon_fence", "deflist"]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "fastapi": ("https://fastapi.tiangolo.com", None),
    "click": ("https://click.palletsprojects.com/en/stable", None),
}

html_theme = "furo"
html_title = "tableplan"

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
master_doc = "index"
exclude_patterns = ["_build"]
