"""
Invoice Plugins

A declarative browser-automation runner designed for:
- Logging in to SaaS billing portals
- Retrieving invoice documents
- Plugins written as JSON step sequences
"""

__version__ = "0.1.0"
