from typing import Optional

from blocker.coordinator.messages import MatchmakingStart


def dispatch_blocks(link, registry, app_id: int, game_type: int,
                    required_version: int, self_identity: Optional[int],
                    logger=None) -> int:
    """Send one matchmaking-start per live target and return how many went out.

    - Evicts the registry before reading it
    - Skips the tick when there are no targets or our own id is unknown
    - A failed send is logged and the remaining targets still get theirs
    """
    registry.evict()
    targets = registry.list()

    if self_identity is None or not targets:
        if logger:
            if self_identity is None:
                logger.info("[dispatch] tick skipped, not logged on")
            else:
                logger.info("[dispatch] tick skipped, no users to block")
        return 0

    if logger:
        logger.info(f"[dispatch] blocking {len(targets)} user{'' if len(targets) == 1 else 's'}")

    sent = 0
    for target in targets:
        message = MatchmakingStart(
            client_version=required_version,
            game_type=game_type,
            account_ids=[self_identity, target.id],
        )
        try:
            link.send(app_id, message)
        except Exception as exc:
            if logger:
                logger.warning(f"[dispatch] send failed target={target.id}: {exc}")
            continue
        sent += 1
    return sent
