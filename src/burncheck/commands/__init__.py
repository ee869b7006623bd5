"""Commands operating on a scanned source tree.

This package contains:
- classify: Classifier deciding whether a candidate was already processed, and the lane dispatcher
"""
