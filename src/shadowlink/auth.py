"""Identifies the user behind a request."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

from .errors import ShadowLinkError

logger = logging.getLogger(__name__)


class Auth(ABC):
    """Interface for identifying the current user.

    Like the engine, an Auth may be created without an app and bound later;
    it reads the ``store`` and ``actions`` of the app it is bound to.
    """

    def __init__(self, app: Any = None):
        self.app = app

    @abstractmethod
    def get_current_user_id(self, **kwargs) -> str:
        """Returns the uid of the user making the request."""
        pass


class SingleUser(Auth):
    """Every request belongs to one local profile.

    The profile is written to the store's ``users`` records the first time
    it is asked for, the way a signup writes it, unless a record for that
    uid already exists.

    Parameters
    ----------
    user_id : str, default="shadow"
        The uid. Non-string values are converted to strings.
    email, display_name, photo_url : str, optional
        Profile fields written on registration.
    app : optional
        The application to register against. Without one, the uid is
        returned and nothing is written.
    """

    def __init__(
        self,
        user_id: str = "shadow",
        email: Optional[str] = None,
        display_name: Optional[str] = "Shadow",
        photo_url: Optional[str] = None,
        app: Any = None,
    ):
        super().__init__(app)
        self.user_id = str(user_id)
        self.email = email
        self.display_name = display_name
        self.photo_url = photo_url
        self._registered = False
        self._lock = threading.Lock()

    def get_current_user_id(self, **kwargs) -> str:
        if not self._registered and self.app is not None:
            with self._lock:
                if not self._registered:
                    self._registered = self._register()
        return self.user_id

    def _register(self) -> bool:
        try:
            if self.app.store.get_user(self.user_id) is not None:
                return True
        except ShadowLinkError as e:
            # Retried on the next request; the action itself reports the outage.
            logger.warning("Could not look up user %s: %s", self.user_id, e.message)
            return False

        result = self.app.actions.create_user(
            self.user_id, self.email, self.display_name, self.photo_url
        )
        if result["success"]:
            logger.info("Registered local user %s", self.user_id)
        return result["success"]
