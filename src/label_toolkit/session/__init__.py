"""
Module: session

Purpose:
    Session-level state: page navigation, drag interaction, and the
    LabelSession object that ties document, region, presets, detection
    and export together.
"""

from .interaction import DragInteraction, DragMode
from .navigation import NavigationState, PageNavigator
from .state import LabelSession

__all__ = [
    "DragInteraction",
    "DragMode",
    "NavigationState",
    "PageNavigator",
    "LabelSession",
]
