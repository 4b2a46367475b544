"""Base class for message routers."""

from __future__ import annotations

from typing import Any


class BaseRouter:
    """Router whose hooks do nothing; subclasses override the ones they need."""

    def pre_handle(self, request: Any) -> None:
        """Hook run before ``handle``."""

    def handle(self, request: Any) -> None:
        """Hook that processes the request."""

    def post_handle(self, request: Any) -> None:
        """Hook run after ``handle``."""