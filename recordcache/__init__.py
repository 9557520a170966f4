"""recordcache: versioned local record cache and spreadsheet importer."""

__version__ = "0.1.0"
