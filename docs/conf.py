# Sphinx configuration for the PySequential API reference.
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys

sys.path.insert(0, os.path.abspath('..'))

project = 'PySequential'
copyright = '2026, PySequential developers'
author = 'PySequential developers'
version = '0.1.0'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx.ext.mathjax',
]

# Solvers and solutions use NumPy-style docstrings; core uses Google style.
napoleon_google_docstrings = True
napoleon_numpy_docstrings = True

autodoc_member_order = 'bysource'
autodoc_typehints = 'description'
autodoc_default_options = {
    'members': True,
    'undoc-members': False,
}

exclude_patterns = ['_build']

# -- HTML output -------------------------------------------------------------

html_theme = 'furo'
html_title = 'PySequential'
html_theme_options = {
    'light_css_variables': {
        'color-brand-primary': '#2c6e9b',
        'color-brand-content': '#1d4f73',
    },
    'dark_css_variables': {
        'color-brand-primary': '#5fa8d3',
        'color-brand-content': '#4b93bd',
    },
}

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'numpy': ('https://numpy.org/doc/stable/', None),
    'scipy': ('https://docs.scipy.org/doc/scipy/', None),
}
