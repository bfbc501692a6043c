from __future__ import annotations

from typing import List

from application.handlers.base import ActionHandler
from domain.exceptions import FatalStageError
from domain.stages.base import Action


class HandlerRegistry:
    def __init__(self, handlers: List[ActionHandler]):
        self._handlers = handlers

    def get_handler(self, action: Action) -> ActionHandler:
        for h in self._handlers:
            if h.supports(action):
                return h
        # a plan the loader accepted but nothing can run: never worth continuing
        raise FatalStageError(f"No handler found for action: {type(action).__name__}")
