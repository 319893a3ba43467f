from .logger_config import setup_logger

__all__ = ['setup_logger']
