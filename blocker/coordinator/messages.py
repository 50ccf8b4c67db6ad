"""Typed coordinator messages exchanged with the game coordinator.

The session only deals with these decoded shapes; turning them into protobuf
payloads is the link's job.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional


class EGCBaseClientMsg(IntEnum):
    k_EMsgGCClientWelcome = 4004
    k_EMsgGCServerWelcome = 4005
    k_EMsgGCClientHello = 4006
    k_EMsgGCServerHello = 4007
    k_EMsgGCClientConnectionStatus = 4009
    k_EMsgGCServerConnectionStatus = 4010


class ECsgoGCMsg(IntEnum):
    k_EMsgGCCStrike15_v2_MatchmakingStart = 9101
    k_EMsgGCCStrike15_v2_MatchmakingStop = 9102
    k_EMsgGCCStrike15_v2_MatchmakingGC2ClientHello = 9110


class GCConnectionStatus(IntEnum):
    HAVE_SESSION = 0
    GC_GOING_DOWN = 1
    NO_SESSION = 2
    NO_SESSION_IN_LOGON_QUEUE = 3
    NO_STEAM = 4
    SUSPENDED = 5
    STEAM_GOING_DOWN = 6


def status_name(status: int) -> str:
    try:
        return GCConnectionStatus(status).name
    except ValueError:
        return str(status)


@dataclass
class ClientHello:
    msg_type = EGCBaseClientMsg.k_EMsgGCClientHello


@dataclass
class MatchmakingHello:
    """Subset of CMsgGCCStrike15_v2_MatchmakingGC2ClientHello the session needs."""
    required_version: int
    account_id: Optional[int] = None


@dataclass
class ClientWelcome:
    msg_type = EGCBaseClientMsg.k_EMsgGCClientWelcome

    # Decoded game_data2; None when the coordinator omitted it
    matchmaking: Optional[MatchmakingHello] = None
    version: int = 0


@dataclass
class ConnectionStatus:
    msg_type = EGCBaseClientMsg.k_EMsgGCClientConnectionStatus

    status: int = GCConnectionStatus.HAVE_SESSION

    @property
    def has_session(self) -> bool:
        return self.status == GCConnectionStatus.HAVE_SESSION


@dataclass
class MatchmakingStart:
    msg_type = ECsgoGCMsg.k_EMsgGCCStrike15_v2_MatchmakingStart

    client_version: int
    game_type: int
    account_ids: List[int] = field(default_factory=list)
