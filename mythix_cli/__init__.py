"""mythix-cli -- command line front-end for Mythix applications."""

__version__ = "1.0.0"
