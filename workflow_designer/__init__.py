"""Workflow designer: stage/action authoring, validation and persistence client."""

__version__ = "1.0.0"
