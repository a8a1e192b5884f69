"""
Session Manager for KeyCalc
Keeps one Calculator per client session, in memory
"""
import logging
import threading
import time
import uuid
from collections import OrderedDict

import config
from calculator import Calculator

logger = logging.getLogger("keycalc.sessions")


class SessionNotFoundError(KeyError):
    """No session with the given id"""

    def __str__(self):
        return f"Unknown session: {self.args[0]}"


class SessionManager:
    """Session table in least-recently-used order.

    Sessions idle for longer than `idle_timeout` seconds are dropped when a
    new one is created; if the table is still full, the least recently used
    session makes room.
    """

    def __init__(self, max_sessions=config.MAX_SESSIONS,
                 idle_timeout=config.SESSION_IDLE_TIMEOUT, clock=time.monotonic):
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self.clock = clock
        self.sessions = OrderedDict()   # id -> Calculator, oldest first
        self.last_used = {}
        self.lock = threading.Lock()

    def _lookup(self, session_id):
        """Find a session and mark it used; caller holds the lock"""
        try:
            calculator = self.sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self.sessions.move_to_end(session_id)
        self.last_used[session_id] = self.clock()
        return calculator

    def _drop(self, session_id):
        del self.sessions[session_id]
        del self.last_used[session_id]

    def _evict(self):
        """Make room for one more session; caller holds the lock"""
        now = self.clock()
        while self.sessions:
            oldest = next(iter(self.sessions))
            if now - self.last_used[oldest] <= self.idle_timeout:
                break
            self._drop(oldest)
            logger.info("expired idle session %s", oldest)
        while self.sessions and len(self.sessions) >= self.max_sessions:
            oldest = next(iter(self.sessions))
            self._drop(oldest)
            logger.info("evicted least recently used session %s", oldest)

    @staticmethod
    def _describe(session_id, calculator):
        return {
            'session_id': session_id,
            'display': calculator.get_display(),
            'stack': calculator.get_stack()
        }

    def create_session(self):
        """Create a new calculator session and return its id"""
        with self.lock:
            self._evict()
            session_id = uuid.uuid4().hex
            self.sessions[session_id] = Calculator()
            self.last_used[session_id] = self.clock()
        logger.info("created session %s", session_id)
        return session_id

    def get_session(self, session_id):
        """Get the Calculator behind a session id"""
        with self.lock:
            return self._lookup(session_id)

    def describe(self, session_id):
        """Display and stack of a session, read together"""
        with self.lock:
            return self._describe(session_id, self._lookup(session_id))

    def press(self, session_id, token):
        """Press one key in a session, returning the display"""
        with self.lock:
            return self._lookup(session_id).press(token)

    def press_sequence(self, session_id, tokens):
        """Press several keys in a session, returning its description afterwards"""
        with self.lock:
            calculator = self._lookup(session_id)
            calculator.press_sequence(tokens)
            return self._describe(session_id, calculator)

    def clear_session(self, session_id):
        """Reset a session to 0, returning its description"""
        with self.lock:
            calculator = self._lookup(session_id)
            calculator.clear()
            return self._describe(session_id, calculator)

    def delete_session(self, session_id):
        """Discard a session"""
        with self.lock:
            if session_id not in self.sessions:
                raise SessionNotFoundError(session_id)
            self._drop(session_id)
        logger.info("deleted session %s", session_id)

    def list_sessions(self):
        """Get ids of all open sessions"""
        with self.lock:
            return list(self.sessions)

    def count(self):
        with self.lock:
            return len(self.sessions)

    def reset(self):
        """Drop every session"""
        with self.lock:
            self.sessions.clear()
            self.last_used.clear()
