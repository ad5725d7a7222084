# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
import datetime

sys.path.insert(0, os.path.abspath('../..'))

try:
    import importlib.metadata as metadata
except ImportError:
    import importlib_metadata as metadata

# -- Project information -----------------------------------------------------

project = 'gpgam'
current_year = datetime.date.today().year
copyright = f'2022-{current_year}, CentraleSupelec'
author = 'Emmanuel Vazquez'
try:
    release = metadata.version('gpgam')
except metadata.PackageNotFoundError:
    with open(os.path.join(os.path.dirname(__file__), '..', '..', 'VERSION')) as f:
        release = f.read().strip()
language = "en"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.mathjax",
]

templates_path = ['_templates']
source_suffix = [".rst", ".md"]
exclude_patterns = ["images"]

# -- Extensions -------------------------------------------------------------

autosummary_generate = True
# matplotlib and torch are optional at documentation time
autodoc_mock_imports = ["torch", "matplotlib", "arviz"]
intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "scipy": ("https://docs.scipy.org/doc/scipy/", None),
}

# -- Options for HTML output -------------------------------------------------

html_theme = 'alabaster'
html_static_path = ["_static"]
html_theme_options = {
    "description": "Bayesian additive models with Gaussian processes",
    "font_family": "'Roboto', Georgia, sans",
    "head_font_family": "'Roboto', Georgia, serif",
    "code_font_family": "'Roboto Mono', 'Consolas', monospace",
}
