"""Read members out of PBO archives without loading the whole archive."""
__version__ = "0.1.0"
