"""D-Bus service for GUI communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "s" and "b" are D-Bus protocol types, not Python syntax.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal
from dbus_next import BusType

from hollow.core.deleter import ElevationError
from hollow.core.engine import HollowEngine
from hollow.models.scan_state import ScanState
from hollow.settings import Settings

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.hollow"
_OBJECT_PATH = "/io/github/hollow"
_INTERFACE = "io.github.hollow.Manager"


# noinspection PyPep8Naming
class HollowDBusService(ServiceInterface):
    """D-Bus service interface for Hollow.

    The engine hands background results to the event loop thread via
    ``call_soon_threadsafe``, so scan state is only touched there.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(_INTERFACE)
        settings = Settings.instance()
        self._engine = HollowEngine(
            include_hidden=settings.include_hidden,
            bundle_suffixes=settings.bundle_suffixes,
            dispatch=loop.call_soon_threadsafe,
            on_state_changed=self._emit_state,
        )

    def _emit_state(self, state: ScanState) -> None:
        self.StateChanged(json.dumps(state.to_dict()))

    def _busy(self) -> bool:
        state = self._engine.state
        return state.is_scanning or state.is_deleting

    @method()
    def Scan(self, path: "s") -> "b":  # type: ignore[override]
        """Start a background scan of *path*."""
        root = Path(path)
        if self._engine.state.is_deleting:
            return False
        if not root.is_dir():
            log.warning("Refusing to scan %s: not a directory", path)
            return False
        self._engine.start_scan(root)
        return True

    @method()
    def GetState(self) -> "s":  # type: ignore[override]
        """Return the current scan state as JSON."""
        return json.dumps(self._engine.state.to_dict())

    @method()
    def DeleteOne(self, path: "s", allow_elevation: "b") -> "s":  # type: ignore[override]
        """Delete a single empty folder tree from the last scan."""
        if self._engine.state.is_deleting:
            return json.dumps({"error": "A deletion is already in progress"})
        hierarchy = self._engine.find(path)
        if hierarchy is None:
            return json.dumps({"error": f"'{path}' is not in the scan results"})

        try:
            self._engine.delete_one(hierarchy, allow_elevation=allow_elevation)
        except PermissionError as e:
            return json.dumps({"error": str(e), "needs_auth": True})
        except ElevationError as e:
            return json.dumps({"error": f"Could not delete even with administrator privileges: {e}"})
        except OSError as e:
            return json.dumps({"error": str(e)})
        return json.dumps({"deleted": path})

    @method()
    def DeleteAll(self, ask_for_elevation: "b") -> "b":  # type: ignore[override]
        """Delete every folder tree from the last scan in the background."""
        if self._busy() or not self._engine.state.empty_folders:
            return False
        self._engine.start_delete_all(ask_for_elevation=ask_for_elevation)
        return True

    @signal()
    def StateChanged(self, state_json: str) -> "s":  # type: ignore[override]
        return state_json

    def shutdown(self) -> None:
        self._engine.shutdown(wait=False)


async def run_service() -> None:
    """Start the D-Bus service."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = HollowDBusService(asyncio.get_running_loop())
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)
    try:
        await bus.wait_for_disconnect()
    finally:
        service.shutdown()


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
