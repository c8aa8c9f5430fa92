from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

ChangeCallback = Callable[[str, str, str], None]


@runtime_checkable
class RemoteConfigPort(Protocol):
    """
    Remote settings store addressed by (group, data id).

    The bootstrap treats the service as a blob store with optional push
    notifications; nothing else about it is assumed.
    """

    def get_config(self, group: str, data_id: str) -> str:
        """
        Fetch the raw content of one settings document.

        Raises:
            Exception: the document is missing or the service is unreachable.
        """
        ...

    def listen_config(self, group: str, data_id: str, content: str, on_change: ChangeCallback) -> None:
        """Register ``on_change(group, data_id, new_content)`` for later changes of the document."""
        ...
