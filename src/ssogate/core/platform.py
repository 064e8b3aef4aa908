"""Platform mode resolution."""

from ssogate.config import Settings, settings
from ssogate.core.constants import PlatformMode


class PlatformModeResolver:
    """Reports the process-wide platform mode; fixed for the process lifetime."""

    def __init__(self, config: Settings | None = None) -> None:
        self._mode = (config or settings).platform_mode

    def current_mode(self) -> PlatformMode:
        return self._mode
