"""modelviz: reflect over an application's data models and explore them as a graph."""

__version__ = "0.1.0"
