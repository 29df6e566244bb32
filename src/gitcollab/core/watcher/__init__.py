"""
Host file-event handling.
"""

from gitcollab.core.watcher.handler import NewFileHandler

__all__ = ["NewFileHandler"]
