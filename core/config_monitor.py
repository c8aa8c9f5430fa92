from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

__all__ = ['ConfigData', 'ConfigMonitor', 'get_config_monitor']
logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ConfigData:
    group: str
    data_id: str
    content: str
    changed: bool = False
    update_time: int = 0


class ConfigMonitor:
    """
    Last-seen content of remote settings documents.

    Change notifications only update this cache. Whoever owns the settings
    decides whether to re-read them (``changed``) and acknowledges with
    :meth:`mark_read`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[Tuple[str, str], ConfigData] = {}

    def set(self, group: str, data_id: str, content: str) -> ConfigData:
        with self._lock:
            key = (group, data_id)
            current = self._data.get(key)
            if current is None:
                current = ConfigData(group=group, data_id=data_id, content=content, update_time=_now_ms())
                self._data[key] = current
            elif current.content != content:
                current.content = content
                current.changed = True
                current.update_time = _now_ms()
            return current

    def on_change(self, group: str, data_id: str, content: str) -> None:
        logger.warning(f'Remote config content changed: group={group} dataId={data_id}')
        self.set(group, data_id, content)

    def get(self, group: str, data_id: str) -> Optional[ConfigData]:
        with self._lock:
            return self._data.get((group, data_id))

    def mark_read(self, group: str, data_id: str) -> None:
        with self._lock:
            data = self._data.get((group, data_id))
            if data is not None:
                data.changed = False
                data.update_time = _now_ms()

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


_monitor = ConfigMonitor()


def get_config_monitor() -> ConfigMonitor:
    return _monitor
