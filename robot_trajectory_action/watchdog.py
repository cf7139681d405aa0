"""
Feedback Watchdog (one per motion group)

Monitors controller feedback freshness. Driven by a periodic transport timer;
on each tick an active goal is aborted if no feedback arrived since the
previous tick.
"""

import logging

from .session import GoalSession

logger = logging.getLogger(__name__)

WATCHDOG_PERIOD = 1.0  # seconds


class FeedbackWatchdog:
    def __init__(self, session: GoalSession, period: float = WATCHDOG_PERIOD):
        self.session = session
        self.period = period

    def tick(self):
        session = self.session
        with session.lock:
            if session.last_feedback is None:
                logger.debug(f'{session.tag} Waiting for subscription to joint trajectory state')
            if not session.feedback_seen_in_window:
                logger.debug(f'{session.tag} Trajectory state not received since last watchdog')

            if session.is_active() and not session.feedback_seen_in_window:
                # last_feedback stays None if the controller never published
                if session.last_feedback is None:
                    logger.warning(f'{session.tag} Aborting goal because we have never heard '
                                   'a controller state message.')
                    session.abort_active('No controller state received')
                else:
                    logger.warning(f"{session.tag} Aborting goal because we haven't heard from "
                                   f'the controller in {self.period} seconds')
                    session.abort_active(f'No controller state in {self.period} seconds')

            session.feedback_seen_in_window = False
