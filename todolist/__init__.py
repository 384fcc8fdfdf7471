"""A minimal task list: REST API, file or database storage, browser and terminal clients."""

__version__ = "1.0.0"
