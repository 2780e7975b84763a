"""Hiring pipeline workflow and interview panel scheduling service."""

__version__ = "0.1.0"
