"""Result persistence layer.

This module writes migration results to the local logs directory.
"""
