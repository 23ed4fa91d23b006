from logorator import Logger


class Loggable:
    """Mixin giving a component the shared on/off logging switches."""

    _global_logging = True

    @classmethod
    def set_logging(cls, enabled: bool):
        """Set logging globally. True=enabled, False=disabled."""
        Loggable._global_logging = enabled

    def _should_log(self) -> bool:
        return Loggable._global_logging and getattr(self, "_logging", True)

    def _log(self, message: str):
        if self._should_log():
            Logger.note(message, mode="short")

    def _log_error(self, message: str):
        """Errors are always noted unless logging is switched off globally."""
        if Loggable._global_logging:
            Logger.note(message, mode="short")


def note(message: str):
    """Module-level note for code outside a Loggable component."""
    if Loggable._global_logging:
        Logger.note(message, mode="short")
