"""Relay session: one signing client, one subscription, one notification sequence.

See Also:
    [RelaySession][notebrotr.services.relay.session.RelaySession]: The session class.
    [RelayConfig][notebrotr.services.relay.configs.RelayConfig]: Session configuration.
"""

from .configs import RelayConfig
from .session import RelaySession, SessionState


__all__ = ["RelayConfig", "RelaySession", "SessionState"]
