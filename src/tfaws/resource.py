"""
Resource and data source lifecycle base classes.

Service modules subclass these and implement the underscore hooks. The public
methods add the behaviour shared by every resource: not-found on read drops
the resource from state, not-found on delete counts as success, and any other
SDK error is reported with the action and the resource identifier.
"""

from typing import Any, Generic, Optional, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from .errors import NotFoundError, ResourceOperationError, is_not_found
from .utils import setup_logging

logger = setup_logging()

C = TypeVar("C")
S = TypeVar("S")

SDK_ERRORS = (ClientError, BotoCoreError)


class Resource(Generic[C, S]):
    """
    A managed AWS object with a create/read/update/delete lifecycle.

    ``C`` is the typed configuration the user declares, ``S`` the typed state
    read back from AWS. Every hook receives the provider as ``meta``.
    """

    type_name = ""
    display_name = ""

    def create(self, meta: Any, config: C) -> S:
        try:
            resource_id = self._create(meta, config)
        except SDK_ERRORS as e:
            raise ResourceOperationError(f"creating {self.display_name}: {e}") from e
        state = self.read(meta, resource_id, new_resource=True)
        if state is None:
            raise ResourceOperationError(f"reading {self.display_name} ({resource_id}): not found after create")
        return state

    def read(self, meta: Any, resource_id: str, new_resource: bool = False) -> Optional[S]:
        """
        Returns the current state, or None when the resource no longer exists.

        A resource that was just created is expected to exist, so absence is
        an error in that case.
        """
        try:
            return self._find(meta, resource_id)
        except (NotFoundError,) + SDK_ERRORS as e:
            if not new_resource and is_not_found(e):
                logger.warning(f"{self.display_name} ({resource_id}) not found, removing from state")
                return None
            raise ResourceOperationError(f"reading {self.display_name} ({resource_id}): {e}") from e

    def update(self, meta: Any, resource_id: str, old: C, new: C) -> Optional[S]:
        try:
            self._update(meta, resource_id, old, new)
        except SDK_ERRORS as e:
            raise ResourceOperationError(f"updating {self.display_name} ({resource_id}): {e}") from e
        return self.read(meta, resource_id)

    def delete(self, meta: Any, resource_id: str, config: Optional[C] = None) -> None:
        logger.debug(f"Deleting {self.display_name}: {resource_id}")
        try:
            self._delete(meta, resource_id, config)
        except SDK_ERRORS as e:
            if is_not_found(e):
                return
            raise ResourceOperationError(f"deleting {self.display_name} ({resource_id}): {e}") from e

    def _create(self, meta: Any, config: C) -> str:
        """Creates the resource and returns its identifier."""
        raise NotImplementedError

    def _find(self, meta: Any, resource_id: str) -> S:
        """Returns the resource's state or raises NotFoundError."""
        raise NotImplementedError

    def _update(self, meta: Any, resource_id: str, old: C, new: C) -> None:
        # Tags only
        pass

    def _delete(self, meta: Any, resource_id: str, config: Optional[C]) -> None:
        raise NotImplementedError


class DataSource(Generic[C, S]):
    """A read-only query against AWS."""

    type_name = ""
    display_name = ""

    def read(self, meta: Any, config: C) -> S:
        try:
            return self._read(meta, config)
        except (NotFoundError,) + SDK_ERRORS as e:
            raise ResourceOperationError(f"reading {self.display_name}: {e}") from e

    def _read(self, meta: Any, config: C) -> S:
        raise NotImplementedError
