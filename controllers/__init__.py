# -*- coding: utf-8 -*-
"""
XCForge Controllers Package

Business logic over catalog sessions: the mutation operators and the
workspace that opens, switches and removes catalogs.
"""

from controllers.catalog_controller import CatalogController, ExportedContent, next_review_state
from controllers.workspace_controller import WorkspaceController

__all__ = [
    'CatalogController',
    'ExportedContent',
    'next_review_state',
    'WorkspaceController',
]
