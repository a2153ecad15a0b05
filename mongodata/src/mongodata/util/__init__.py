from .util import get_path, get_now, uncapitalize, has_text

__all__ = ["get_path", "get_now", "uncapitalize", "has_text"]
