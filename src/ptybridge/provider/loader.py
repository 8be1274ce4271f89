"""Provider loader — import a native pty module and check its shape.

Load failures never propagate. They come back as a tagged ``LoadResult`` so
the resolver can move on to the next provider.
"""

from __future__ import annotations

import asyncio
import enum
import importlib
import inspect
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ptybridge.diagnostics import log_debug, log_error

if TYPE_CHECKING:
    from ptybridge.session.base import Session, SessionConfig

# Module attribute checked before falling back to the module itself
DEFAULT_EXPORT = "provider"
SPAWN_ATTR = "spawn"


class LoadStatus(enum.Enum):
    LOADED = "loaded"
    ABSENT = "absent"  # Module not installed (expected)
    INVALID_EXPORT = "invalid_export"  # Imported, but has no callable spawn
    FAILED = "failed"  # Import raised something other than ModuleNotFoundError


@dataclass(frozen=True)
class NativeCapability:
    """A validated provider export, tagged with its provider name."""

    name: str
    export: Any

    async def spawn(
        self,
        command: str,
        args: Sequence[str],
        config: SessionConfig,
    ) -> Session:
        """Start a session. Accepts both sync and async ``spawn`` exports."""
        result = getattr(self.export, SPAWN_ATTR)(command, list(args), config)
        if inspect.isawaitable(result):
            result = await result
        return result


@dataclass(frozen=True)
class LoadResult:
    status: LoadStatus
    provider_name: str
    capability: NativeCapability | None = None
    error: BaseException | None = None

    @property
    def available(self) -> bool:
        return self.status == LoadStatus.LOADED and self.capability is not None


def resolve_export(module: Any) -> Any:
    """The module's ``provider`` attribute if it has one, else the module."""
    export = getattr(module, DEFAULT_EXPORT, None)
    return export if export is not None else module


async def load_provider(target: str, name: str) -> LoadResult:
    """Import ``target`` and validate it as the native provider ``name``."""
    loop = asyncio.get_running_loop()
    try:
        module = await loop.run_in_executor(None, importlib.import_module, target)
    except ModuleNotFoundError as e:
        log_debug("Native module not found: %s (missing %s)", target, e.name)
        return LoadResult(LoadStatus.ABSENT, name, error=e)
    except Exception as e:
        log_error("Unexpected error loading native module %s: %r", target, e)
        return LoadResult(LoadStatus.FAILED, name, error=e)

    export = resolve_export(module)
    if not callable(getattr(export, SPAWN_ATTR, None)):
        log_debug("Native module invalid export: %s is missing a spawn function", target)
        return LoadResult(LoadStatus.INVALID_EXPORT, name)

    log_debug("Native module loaded: %s", target)
    return LoadResult(LoadStatus.LOADED, name, NativeCapability(name=name, export=export))
