import logging
import os
import re
from typing import Any, Final

logger = logging.getLogger(__name__)

_RE_ENV_DEFAULT: Final[re.Pattern[str]] = re.compile('\\$\\{([A-Za-z_][A-Za-z0-9_]*):-(.*?)\\}')


def interpolate_env(value: str) -> str:
    """Expand ``${VAR}``, ``$VAR`` and ``${VAR:-default}`` inside a string."""
    if not isinstance(value, str):
        return value

    def _repl(match: re.Match[str]) -> str:
        var, default = match.group(1), match.group(2)
        return os.getenv(var, default)

    before = value
    value = _RE_ENV_DEFAULT.sub(_repl, value)
    value = os.path.expandvars(value)

    if before != value:
        logger.debug("Env expand: '%s' -> '%s'", before, value)
    elif '${' in before:
        logger.warning("Unresolved env var in '%s'", before)
    return value


def expand_tree(node: Any) -> Any:
    """Apply :func:`interpolate_env` to every string in a decoded settings tree."""
    if isinstance(node, dict):
        return {k: expand_tree(v) for k, v in node.items()}
    if isinstance(node, list):
        return [expand_tree(v) for v in node]
    if isinstance(node, str):
        return interpolate_env(node)
    return node
