"""Metadata for backlink_tracker."""

__all__ = [
    "__title__",
    "__version__",
    "__description__",
    "__credits__",
    "__requires_python__",
]

__title__ = "backlink_tracker"
__version__ = "0.1.0"
__description__ = (
    "Resumable, batched verification that source pages still link to their targets."
)
__credits__ = [
    {"name": "Matthew D. Martin", "email": "matthewdeanmartin@users.noreply.github.com"}
]
__requires_python__ = ">=3.9"
