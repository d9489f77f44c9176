"""Content access and authorization gateway for the blog."""

__version__ = "0.1.0"
