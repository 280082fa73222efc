"""
tfaws: AWS resource helpers in the style of the Terraform AWS provider.

The package provides the pieces every resource wrapper needs:
1. Paginated finders that stop at the first match or report not-found
2. Tag set diffing and reconciliation that never touches system tags
3. A not-found error that read paths use to drop resources from state
4. A read-only registration table from resource type name to implementation

Service modules under ``tfaws.services`` instantiate these for individual
AWS services.
"""

from .errors import NotFoundError, is_not_found
from .finder import Page, find_all, find_first, find_first_in_pages
from .tags import KeyValueTags, diff_tags, update_tags

__all__ = [
    "KeyValueTags",
    "NotFoundError",
    "Page",
    "diff_tags",
    "find_all",
    "find_first",
    "find_first_in_pages",
    "is_not_found",
    "update_tags",
]
