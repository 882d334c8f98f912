"""Mandate day-value spreadsheet import service."""
