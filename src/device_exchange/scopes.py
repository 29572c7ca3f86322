import logging
from collections.abc import Sequence

logger = logging.getLogger(__name__)


def parse_scope(scope: str | None, separators: Sequence[str] = (" ",)) -> list[str] | None:
    """Split a raw scope string into an ordered list of scope values.

    Separators are tried in priority order and only the first one that
    actually splits the string is used. This lets the server accept clients
    that delimit scope with either spaces or commas, at the cost of not
    supporting scope values containing a lower-priority separator.

    Args:
        scope: Raw ``scope`` parameter, or None when the client sent none.
        separators: Candidate separators, highest priority first.

    Returns:
        List of scope values, or None if no scope was supplied.
    """
    if not scope:
        return None

    for separator in separators:
        separated = scope.split(separator)
        if len(separated) > 1:
            logger.debug(f"Split scope on {separator!r} into {len(separated)} values")
            return separated

    return [scope]
