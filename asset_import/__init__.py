"""Bulk spreadsheet importer for the fixed-asset inventory REST API.

Parses category / asset spreadsheets, validates rows locally, submits the valid
ones to the bulk endpoints and reconciles the server's answer into one result set.
"""

__version__ = "0.1.0"
