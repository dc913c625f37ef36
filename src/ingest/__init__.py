"""Migration orchestration.

This module resolves input sources, fans record-type pipelines out to the
importer, and folds their outcomes into one results value.
"""
