"""Client and hub: the explicitly passed context of an embedding host."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from relaunch.core.options import Options
from relaunch.core.scope.scope import DEFAULT_MAX_BREADCRUMBS, Scope
from relaunch.core.session.models import Session
from relaunch.core.store.records import RecordStore
from relaunch.core.utils.time import DEFAULT_CLOCK, Clock

logger = logging.getLogger(__name__)


class Client:
    def __init__(self, options: Options, *, store: Optional[RecordStore] = None) -> None:
        self.options = options
        self.store = store or RecordStore(options.store_dir)


class Hub:
    """Binds a client to a scope and owns the in-flight session."""

    def __init__(
        self,
        client: Optional[Client] = None,
        scope: Optional[Scope] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._client = client
        self.clock = clock or DEFAULT_CLOCK
        max_breadcrumbs = client.options.max_breadcrumbs if client else DEFAULT_MAX_BREADCRUMBS
        self.scope = scope or Scope(max_breadcrumbs=max_breadcrumbs, clock=self.clock)
        self._session: Optional[Session] = None
        self._lock = threading.RLock()

    @property
    def client(self) -> Optional[Client]:
        return self._client

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def bind_client(self, client: Optional[Client]) -> None:
        self._client = client

    def configure_scope(self, callback: Callable[[Scope], None]) -> None:
        callback(self.scope)

    def start_session(self) -> Optional[Session]:
        """Start a new ``ok`` session, ending the previous one as exited."""
        client = self._client
        if client is None:
            logger.debug("No client bound; not starting a session")
            return None
        with self._lock:
            if self._session is not None:
                self.end_session()
            options = client.options
            session = Session.create(
                options.release_name,
                environment=options.environment,
                distinct_id=self.scope.user.id if self.scope.user else None,
                clock=self.clock,
            )
            client.store.store_current_session(session)
            self._session = session
            return session

    def capture_error(self) -> Optional[Session]:
        """Count an error against the in-flight session and persist it."""
        with self._lock:
            session = self._session
            if session is None or self._client is None:
                return None
            session.increment_errors(clock=self.clock)
            self._client.store.store_current_session(session)
            return session

    def end_session(self) -> Optional[Session]:
        """End the in-flight session normally and stage it for upload.

        The staging slot holds one session. When it still holds an earlier
        session that was not uploaded, that one is kept and the exited session
        is only returned.
        """
        with self._lock:
            session = self._session
            if session is None or self._client is None:
                return None
            session.end_exited(self.clock.now())
            store = self._client.store
            staged = store.read_crashed_session()
            if staged is None:
                store.move_to_crashed(session)
            else:
                logger.warning(
                    "Staging slot still holds %s session %s; not staging %s",
                    staged.status.value,
                    staged.id,
                    session.id,
                )
                store.delete_current_session()
            self._session = None
            return session


__all__ = ["Client", "Hub"]
