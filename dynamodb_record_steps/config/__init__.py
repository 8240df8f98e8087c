from .config import StepsConfig, configure_logging

__all__ = ["StepsConfig", "configure_logging"]
