"""Coordinator link over the Steam network.

Wraps ``steam.client.SteamClient`` and its ``GameCoordinator`` channel and
owns the protobuf codec for the handful of coordinator messages the session
uses. Requires the ``steam`` extra and a gevent-patched process.
"""

from google.protobuf.message import DecodeError
from steam.client import SteamClient
from steam.client.gc import GameCoordinator
from steam.core.msg import GCMsgHdrProto
from steam.enums import EResult
from csgo.protobufs import cstrike15_gcmessages_pb2, gcsdk_gcmessages_pb2

from blocker.errors import LinkFatal
from .link import (
    CoordinatorLink,
    LinkAuthenticated,
    LinkDisconnected,
    LinkFailed,
    MessageReceived,
)
from .messages import (
    ClientHello,
    ClientWelcome,
    ConnectionStatus,
    EGCBaseClientMsg,
    MatchmakingHello,
    MatchmakingStart,
)


def encode(message) -> bytes:
    if isinstance(message, ClientHello):
        return gcsdk_gcmessages_pb2.CMsgClientHello().SerializeToString()
    if isinstance(message, MatchmakingStart):
        return cstrike15_gcmessages_pb2.CMsgGCCStrike15_v2_MatchmakingStart(
            client_version=message.client_version,
            game_type=message.game_type,
            account_ids=list(message.account_ids),
        ).SerializeToString()
    raise TypeError(f"No encoder for {type(message).__name__}")


def decode(msg_type: int, body: bytes):
    """Decode a coordinator payload; returns None for types the session ignores."""
    if msg_type == EGCBaseClientMsg.k_EMsgGCClientWelcome:
        welcome = gcsdk_gcmessages_pb2.CMsgClientWelcome.FromString(body)
        matchmaking = None
        if welcome.game_data2:
            hello = cstrike15_gcmessages_pb2.CMsgGCCStrike15_v2_MatchmakingGC2ClientHello.FromString(
                welcome.game_data2
            )
            matchmaking = MatchmakingHello(
                required_version=hello.global_stats.required_appid_version,
                account_id=hello.account_id or None,
            )
        return ClientWelcome(matchmaking=matchmaking, version=welcome.version)
    if msg_type == EGCBaseClientMsg.k_EMsgGCClientConnectionStatus:
        status = gcsdk_gcmessages_pb2.CMsgConnectionStatus.FromString(body)
        return ConnectionStatus(status=status.status)
    return None


class SteamLink(CoordinatorLink):

    def __init__(self, username, password, app_id=730, two_factor_code=None,
                 reconnect_max_delay=30, logger=None):
        super().__init__()
        self.username = username
        self.password = password
        self.app_id = app_id
        self.two_factor_code = two_factor_code
        self.reconnect_max_delay = reconnect_max_delay
        self._logger = logger
        self.client = SteamClient()
        self.gc = GameCoordinator(self.client, app_id)

        self.client.on(SteamClient.EVENT_LOGGED_ON, self._handle_logged_on)
        self.client.on(SteamClient.EVENT_DISCONNECTED, self._handle_disconnected)
        self.client.on(SteamClient.EVENT_ERROR, self._handle_error)
        for msg_type in (EGCBaseClientMsg.k_EMsgGCClientWelcome,
                         EGCBaseClientMsg.k_EMsgGCClientConnectionStatus):
            self.gc.on(int(msg_type), self._gc_handler(int(msg_type)))

    def connect(self) -> None:
        if self._login():
            self.client.run_forever()

    def _login(self) -> bool:
        result = self.client.login(self.username, self.password,
                                   two_factor_code=self.two_factor_code)
        if result != EResult.OK:
            self._emit(LinkFailed(LinkFatal(f"Steam login failed: {result!r}")))
            return False
        return True

    def request_license(self, app_id: int) -> None:
        resp = self.client.request_free_license([app_id])
        if resp is None:
            raise RuntimeError('License request timed out')
        result = resp[0]
        if result != EResult.OK:
            raise RuntimeError(f"License request failed: {result!r}")

    def declare_playing(self, app_ids) -> None:
        self.client.games_played(list(app_ids))

    def send(self, app_id: int, message) -> None:
        if app_id != self.app_id:
            raise ValueError(f"Link is bound to app {self.app_id}, not {app_id}")
        self.gc.send(GCMsgHdrProto(int(message.msg_type)), encode(message))

    # ---- Steam client callbacks ----

    def _handle_logged_on(self):
        if self._logger:
            self._logger.info(f"[link] successfully logged into {self.client.steam_id.as_64}")
        self._emit(LinkAuthenticated(self_identity=self.client.steam_id.account_id))

    def _handle_disconnected(self):
        self._emit(LinkDisconnected(reason='steam connection lost'))
        if self._logger:
            self._logger.info("[link] reconnecting...")
        if self.client.reconnect(maxdelay=self.reconnect_max_delay, retry=0):
            if self.client.relogin_available:
                self.client.relogin()
            else:
                self._login()

    def _handle_error(self, result):
        self._emit(LinkFailed(LinkFatal(f"Steam client error: {result!r}")))

    def _gc_handler(self, msg_type):
        def handler(header, body):
            try:
                message = decode(msg_type, body)
            except DecodeError as exc:
                if self._logger:
                    self._logger.error(f"[link] undecodable payload type={msg_type}: {exc}")
                return
            if message is not None:
                self._emit(MessageReceived(self.app_id, message))
        return handler
