from blocker.coordinator.messages import (
    ConnectionStatus,
    GCConnectionStatus,
    MatchmakingStart,
    ECsgoGCMsg,
    status_name,
)


def test_status_name_known_and_unknown():
    assert status_name(GCConnectionStatus.NO_SESSION) == 'NO_SESSION'
    assert status_name(0) == 'HAVE_SESSION'
    assert status_name(99) == '99'


def test_connection_status_has_session():
    assert ConnectionStatus().has_session
    assert not ConnectionStatus(status=GCConnectionStatus.SUSPENDED).has_session


def test_matchmaking_start_type_tag():
    message = MatchmakingStart(client_version=1, game_type=519, account_ids=[1, 2])
    assert message.msg_type == ECsgoGCMsg.k_EMsgGCCStrike15_v2_MatchmakingStart == 9101
