"""
Session Manager

Provides:
- Per-host requests.Session management
- Per-host request serialization (thread-safety)
- Session cleanup

Two firmware pushes sharing one session token against the same device are
not coordinated beyond this per-host lock; callers serialize those.
"""

import threading
import requests
from typing import Dict, Tuple


class SessionManager:
    """
    Manages per-host requests.Session objects.

    Requests to the same host are serialized so a single requests.Session is
    never used from two threads at once.
    """

    def __init__(self, verify_ssl: bool = False, timeout: Tuple[int, int] = (5, 30)):
        """
        Initialize the session manager.

        Args:
            verify_ssl: Whether to verify SSL certificates (default False for self-signed)
            timeout: Default (connect_timeout, read_timeout) applied when a call sets none
        """
        self.sessions: Dict[str, requests.Session] = {}
        self.locks: Dict[str, threading.Lock] = {}  # Per-host locks for serialization
        self.lock_lock = threading.Lock()  # Lock for creating per-host locks
        self.verify_ssl = verify_ssl
        self.timeout = timeout

        if not verify_ssl:
            import urllib3
            urllib3.disable_warnings()

    def _get_lock(self, host: str) -> threading.Lock:
        """
        Get or create a lock for a host (thread-safe).

        Args:
            host: Device host or IP address

        Returns:
            threading.Lock for this host
        """
        with self.lock_lock:
            if host not in self.locks:
                self.locks[host] = threading.Lock()
            return self.locks[host]

    def get_session(self, host: str) -> requests.Session:
        """
        Get or create a requests.Session for a host.

        Note: This method is NOT thread-safe for direct use.
        Use make_request() for thread-safe requests.
        """
        if host not in self.sessions:
            session = requests.Session()
            session.verify = self.verify_ssl
            self.sessions[host] = session

        return self.sessions[host]

    def close_session(self, host: str):
        """Close and cleanup session for a host."""
        session = self.sessions.pop(host, None)
        if session is not None:
            session.close()

    def close_all_sessions(self):
        """Close all active sessions."""
        for key in list(self.sessions.keys()):
            self.close_session(key)

    def make_request(
        self,
        method: str,
        url: str,
        host: str,
        **kwargs
    ) -> requests.Response:
        """
        Make a thread-safe HTTP request with per-host serialization.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            url: Full URL to request
            host: Device host (used to get/create session)
            **kwargs: Additional arguments for requests.Session.request()

        Returns:
            requests.Response object
        """
        lock = self._get_lock(host)

        with lock:  # Serialize requests to this host
            session = self.get_session(host)

            if kwargs.get('timeout') is None:
                kwargs['timeout'] = self.timeout

            # Ensure Accept header
            if kwargs.get('headers') is None:
                kwargs['headers'] = {}
            if 'Accept' not in kwargs['headers']:
                kwargs['headers']['Accept'] = 'application/json'

            return session.request(method, url, **kwargs)
