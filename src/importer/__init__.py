"""Bulk import layer.

This module sends transformed records to Mixpanel's ingestion APIs.
The orchestrator depends only on the ``Importer`` protocol.
"""
