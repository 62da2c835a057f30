"""Privacy Gate — TCF consent evaluation and synthetic identity resolution."""

__version__ = "0.1.0"
