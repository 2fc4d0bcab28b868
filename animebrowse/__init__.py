"""animeBrowse: cached, single-flight query layer over the Jikan anime catalog."""

__version__ = "0.1.0"
