from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class SessionStatus(StrEnum):
    idle = "idle"
    active = "active"


class SessionFSM(StateMachine):
    """Guards the lifecycle of one connection's game session.

    - idle -> playing on the first accepted move after idle
    - playing -> playing on every further accepted move
    - playing -> idle when the inactivity deadline fires

    The Session owns the data; the FSM only decides which transitions are legal.
    """

    idle = State(SessionStatus.idle.value, value=SessionStatus.idle.value, initial=True)
    playing = State(SessionStatus.active.value, value=SessionStatus.active.value)

    open_session = idle.to(playing)
    move = playing.to.itself()
    expire = playing.to(idle)

    @property
    def status(self) -> SessionStatus:
        return SessionStatus(str(self.current_state.value))
