from ._version import __version__

__all__ = ["__version__"]


def _update_logger_class():
    from red_commons.logging import maybe_update_logger_class

    maybe_update_logger_class()


# Replaces the logger class before any module calls `logging.getLogger()`, so that
# every warden logger has the `trace` and `verbose` levels available.
_update_logger_class()
