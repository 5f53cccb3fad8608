"""
Client-local persistence for the admin session flag.

The flag only records that the pattern gate was passed on this machine. It is
not a credential: anyone who can write the file can set it.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

AUTH_FLAG_KEY = "adminAuthenticated"


class SessionStore:
    def __init__(self, path: str) -> None:
        self.path = path

    def read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as session_file:
                data = json.load(session_file)
        except (OSError, ValueError):
            logger.exception("Failed to read session file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def write(self, data: Dict[str, Any]) -> None:
        with open(self.path, "w", encoding="utf-8") as session_file:
            json.dump(data, session_file)

    def is_authenticated(self) -> bool:
        return self.read().get(AUTH_FLAG_KEY) is True

    def grant(self) -> None:
        data = self.read()
        data[AUTH_FLAG_KEY] = True
        self.write(data)

    def clear(self) -> None:
        data = self.read()
        if data.pop(AUTH_FLAG_KEY, None) is None:
            return
        self.write(data)


class AdminSession:
    """Application-level session handed to the shell at startup.

    The flag is read once per client connection with ``start()``; afterwards it
    only changes through ``login()`` and ``logout()``.
    """

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    def start(self) -> bool:
        return self.store.is_authenticated()

    def login(self) -> bool:
        try:
            self.store.grant()
        except OSError:
            logger.exception("Could not persist session flag to %s", self.store.path)
        else:
            logger.info("Admin session granted")
        return True

    def logout(self) -> bool:
        try:
            self.store.clear()
        except OSError:
            logger.exception("Could not clear session flag in %s", self.store.path)
        else:
            logger.info("Admin session cleared")
        return False
