"""
Per-Operation Status Map

One tagged status per named operation (idle, running, done, failed) in
place of parallel loading/error flags.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from .models import OperationState, OperationStatus

logger = logging.getLogger(__name__)


class OperationStatusMap:
    """Mapping of operation name -> OperationStatus"""

    def __init__(self):
        self._statuses: Dict[str, OperationStatus] = {}

    def get(self, name: str) -> OperationStatus:
        return self._statuses.get(name, OperationStatus())

    def is_running(self, name: str) -> bool:
        return self.get(name).state == OperationState.RUNNING

    def error(self, name: str) -> Optional[str]:
        status = self.get(name)
        return status.reason if status.state == OperationState.FAILED else None

    def errors(self) -> Dict[str, str]:
        return {
            name: status.reason or ""
            for name, status in self._statuses.items()
            if status.state == OperationState.FAILED
        }

    def snapshot(self) -> Dict[str, OperationStatus]:
        return dict(self._statuses)

    def start(self, name: str) -> None:
        self._statuses[name] = OperationStatus(state=OperationState.RUNNING)

    def succeed(self, name: str) -> None:
        self._statuses[name] = OperationStatus(state=OperationState.DONE)

    def fail(self, name: str, reason: str) -> None:
        logger.debug(f"Operation {name} failed: {reason}")
        self._statuses[name] = OperationStatus(state=OperationState.FAILED, reason=reason)

    def reset(self, name: str) -> None:
        self._statuses.pop(name, None)

    def clear(self) -> None:
        self._statuses.clear()

    @contextmanager
    def track(self, name: str) -> Iterator[None]:
        """Mark name running for the duration of the block; failed(reason) if it raises"""
        self.start(name)
        try:
            yield
        except asyncio.CancelledError:
            self.reset(name)
            raise
        except Exception as e:
            self.fail(name, str(e))
            raise
        else:
            self.succeed(name)


__all__ = ["OperationStatusMap"]
