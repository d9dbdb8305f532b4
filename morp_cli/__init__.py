"""MORP command line interface."""
__version__ = "2.1.0"
