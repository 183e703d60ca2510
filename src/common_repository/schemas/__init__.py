from .page_response import PageResponse

__all__ = ["PageResponse"]
