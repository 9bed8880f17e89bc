"""
Storage Scripts

This module contains the trail dataset schemas and the file-based checkpoint
store used to make enrichment runs resumable.
"""
