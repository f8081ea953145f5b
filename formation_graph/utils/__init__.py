# -*- coding: utf-8 -*-
"""
Utilities package for common functionality across the importer.

Contains configuration loading, logging setup, error types, retry policy,
progress tracking and the core dataclasses.
"""
