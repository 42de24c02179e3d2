from product_editor.core.config import Settings, get_settings, settings
from product_editor.core.logging import get_logger, setup_logging

__all__ = ["Settings", "get_settings", "settings", "get_logger", "setup_logging"]
