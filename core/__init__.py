# -*- coding: utf-8 -*-
"""
XCForge Core Package

Catalog state engine internals: value resolution, diffing, text sync,
scheduling and storage. Modules are imported directly (core.json_format, ...).
"""
