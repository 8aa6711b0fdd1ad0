"""
Miscellaneous utilities: path helpers for case insensitive file names,
context managers, cell edges and polygon and line clipping.
"""

from imodclip.util.context import ignore_warnings, removed_on_error
from imodclip.util.geometry import clip_line, clip_polygon
from imodclip.util.path import copy_file, find_case_insensitive, siblings
