"""
Storage module - Local JSON key/value persistence.
"""

from do_common.storage.json_store import JSONStore

__all__ = ["JSONStore"]
