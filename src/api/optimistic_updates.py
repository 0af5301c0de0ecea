#!/usr/bin/env python3
"""
Optimistic Updates
Holds a value that is replaced immediately on update and rolled back if the
backing update call fails.
"""

from typing import Callable, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class OptimisticUpdate(Generic[T]):
    """
    Optimistic state wrapper.

    Example:
        holder = OptimisticUpdate(recipe, save_recipe)
        holder.update({**holder.data, "title": "New Title"})
    """

    def __init__(self, initial_data: T, update_fn: Callable[[T], T]):
        """
        Args:
            initial_data: Starting value
            update_fn: Performs the real update and returns the stored value
        """
        self.initial_data = initial_data
        self.update_fn = update_fn
        self.data: T = initial_data
        self.is_pending = False
        self.error: Optional[Exception] = None

    def update(self, new_data: T) -> T:
        """
        Apply new data immediately, then confirm it with update_fn.

        On failure the previous data is restored, the error is recorded and
        the exception is re-raised.
        """
        previous_data = self.data

        self.data = new_data
        self.is_pending = True
        self.error = None

        try:
            result = self.update_fn(new_data)
        except Exception as e:
            self.data = previous_data
            self.is_pending = False
            self.error = e
            logger.warning("Optimistic update rolled back", error=str(e))
            raise

        self.data = result
        self.is_pending = False
        return result

    def reset(self):
        self.data = self.initial_data
        self.is_pending = False
        self.error = None

    def snapshot(self) -> dict:
        return {
            "data": self.data,
            "is_pending": self.is_pending,
            "error": str(self.error) if self.error else None,
        }
