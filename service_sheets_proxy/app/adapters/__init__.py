"""
External adapters for the Sheets Proxy Service.
"""

from .sheets_client import SheetsClient

__all__ = ["SheetsClient"]
