"""Draftsmith: AI-assisted authoring wizards for courses and job applications."""

__version__ = "1.0.0"
