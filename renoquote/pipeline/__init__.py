"""Reseed pipeline for RenoQuote.

Replaces a document store collection with a freshly generated document set
using sequential atomic batches.
"""
