"""
Tag set handling and tag reconciliation.

Tags are compared by key: a key present in the old set and absent from the
new one is removed; a key that is new or whose value changed is upserted.
Keys under reserved prefixes (always ``aws:``, plus any ignore-tags settings)
are never touched.
"""

from dataclasses import dataclass, field
from typing import (
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

from botocore.exceptions import BotoCoreError, ClientError

from .errors import TagUpdateError
from .types import ReservedKeyPredicate, TagList, TagMap
from .utils import setup_logging

logger = setup_logging()

AWS_TAG_KEY_PREFIX = "aws:"

Reserved = Union[ReservedKeyPredicate, Iterable[str], None]


@dataclass(frozen=True)
class IgnoreConfig:
    """Provider ignore-tags settings: exact keys and key prefixes to leave alone."""

    keys: FrozenSet[str] = field(default_factory=frozenset)
    key_prefixes: FrozenSet[str] = field(default_factory=frozenset)

    def is_ignored(self, key: str) -> bool:
        return key in self.keys or any(key.startswith(p) for p in self.key_prefixes)


class KeyValueTags:
    """
    A set of resource tags keyed by tag key.

    Accepts a mapping, a list of ``{"Key": ..., "Value": ...}`` dicts or another
    KeyValueTags. Methods return new instances and never modify ``self``.
    """

    def __init__(self, tags: Union["KeyValueTags", Mapping[str, Optional[str]], TagList, None] = None) -> None:
        if tags is None:
            self._tags: Dict[str, str] = {}
        elif isinstance(tags, KeyValueTags):
            self._tags = dict(tags._tags)
        elif isinstance(tags, Mapping):
            self._tags = {str(k): "" if v is None else str(v) for k, v in tags.items()}
        else:
            self._tags = dict(self._pairs_from_list(tags))

    @classmethod
    def from_list(cls, tags: Optional[TagList], key_name: str = "Key", value_name: str = "Value") -> "KeyValueTags":
        """Builds tags from SDK tag lists, e.g. ``[{"Key": "env", "Value": "dev"}]``."""
        return cls(dict(cls._pairs_from_list(tags or [], key_name, value_name)))

    @staticmethod
    def _pairs_from_list(
        tags: Iterable[Mapping[str, Optional[str]]], key_name: str = "Key", value_name: str = "Value"
    ) -> Iterator[Tuple[str, str]]:
        for tag in tags:
            if not tag or tag.get(key_name) is None:
                continue
            value = tag.get(value_name)
            yield str(tag[key_name]), "" if value is None else str(value)

    def ignore_aws(self) -> "KeyValueTags":
        """Drops system tags, the ones with the ``aws:`` prefix."""
        return self.ignore_prefixes([AWS_TAG_KEY_PREFIX])

    def ignore_prefixes(self, prefixes: Iterable[str]) -> "KeyValueTags":
        prefixes = tuple(prefixes)
        return KeyValueTags({k: v for k, v in self._tags.items() if not k.startswith(prefixes)})

    def ignore(self, keys: Iterable[str]) -> "KeyValueTags":
        drop = set(keys)
        return KeyValueTags({k: v for k, v in self._tags.items() if k not in drop})

    def ignore_config(self, config: Optional[IgnoreConfig]) -> "KeyValueTags":
        if config is None:
            return self
        return KeyValueTags({k: v for k, v in self._tags.items() if not config.is_ignored(k)})

    def removed(self, new: "KeyValueTags") -> "KeyValueTags":
        """Tags in self whose keys are absent from ``new``."""
        return KeyValueTags({k: v for k, v in self._tags.items() if k not in new._tags})

    def updated(self, new: "KeyValueTags") -> "KeyValueTags":
        """Tags in ``new`` that are absent from self or carry a different value."""
        return KeyValueTags({k: v for k, v in new._tags.items() if self._tags.get(k) != v})

    def merge(self, other: "KeyValueTags") -> "KeyValueTags":
        """Union of both sets; values from ``other`` win."""
        merged = dict(self._tags)
        merged.update(other._tags)
        return KeyValueTags(merged)

    def keys(self) -> List[str]:
        return sorted(self._tags)

    def map(self) -> TagMap:
        return dict(self._tags)

    def to_list(self, key_name: str = "Key", value_name: str = "Value") -> TagList:
        return [{key_name: k, value_name: v} for k, v in sorted(self._tags.items())]

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, key: object) -> bool:
        return key in self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KeyValueTags):
            return self._tags == other._tags
        if isinstance(other, Mapping):
            return self._tags == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"KeyValueTags({self._tags!r})"


def _reserved_predicate(reserved: Reserved) -> ReservedKeyPredicate:
    if reserved is None:
        return lambda key: False
    if callable(reserved):
        return reserved
    prefixes = (reserved,) if isinstance(reserved, str) else tuple(reserved)
    return lambda key: key.startswith(prefixes)


def diff_tags(
    old: Union[KeyValueTags, Mapping[str, str], None],
    new: Union[KeyValueTags, Mapping[str, str], None],
    reserved: Reserved = None,
) -> Tuple[Set[str], TagMap]:
    """
    Computes the changes that turn ``old`` into ``new``.

    Args:
        old: Current tags
        new: Desired tags
        reserved: Predicate on keys, or reserved key prefixes; matching keys
            are excluded from both results

    Returns:
        (keys to remove, tags to add or update)
    """
    is_reserved = _reserved_predicate(reserved)
    old_tags = KeyValueTags(old)
    new_tags = KeyValueTags(new)

    to_remove = {k for k in old_tags.removed(new_tags) if not is_reserved(k)}
    to_upsert = {k: v for k, v in old_tags.updated(new_tags).map().items() if not is_reserved(k)}
    return to_remove, to_upsert


def update_tags(
    identifier: str,
    old: Union[KeyValueTags, Mapping[str, str], None],
    new: Union[KeyValueTags, Mapping[str, str], None],
    untag: Callable[[List[str]], object],
    tag: Callable[[TagMap], object],
    reserved: Reserved = None,
) -> None:
    """
    Reconciles a resource's tags from ``old`` to ``new``.

    Removal runs before upsert. A failing step raises straight away and an
    already applied removal stays applied.

    Args:
        identifier: Resource identifier used by the tagging API (ARN, URL, ...)
        old: Current tags
        new: Desired tags
        untag: Calls the service's untag API with a list of keys
        tag: Calls the service's tag API with a key/value mapping
        reserved: Extra reserved keys, see ``diff_tags``; ``aws:`` is always reserved

    Raises:
        TagUpdateError: If the service rejects either call
    """
    extra = _reserved_predicate(reserved)

    def is_reserved(key: str) -> bool:
        return key.startswith(AWS_TAG_KEY_PREFIX) or extra(key)

    to_remove, to_upsert = diff_tags(old, new, is_reserved)

    if to_remove:
        logger.debug(f"Removing tags {sorted(to_remove)} from {identifier}")
        try:
            untag(sorted(to_remove))
        except (ClientError, BotoCoreError) as e:
            raise TagUpdateError(f"untagging resource ({identifier}): {e}") from e

    if to_upsert:
        logger.debug(f"Setting tags {sorted(to_upsert)} on {identifier}")
        try:
            tag(to_upsert)
        except (ClientError, BotoCoreError) as e:
            raise TagUpdateError(f"tagging resource ({identifier}): {e}") from e
