import logging
from typing import Iterable, List, Optional, Sequence

from mcphub.registry import ServerDescriptor

log = logging.getLogger(__name__)


def parse_name_list(value: Optional[str]) -> Optional[List[str]]:
    """
    Splits a comma-separated CLI value into names. Returns None only when the
    flag was absent or empty; a value with no names in it, such as ",", gives
    an empty list, which selects nothing.
    """
    if not value:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def _warn_unknown(label: str, names: Iterable[str], known: set) -> None:
    unknown = sorted(set(names) - known)
    if unknown:
        log.warning(f"--{label} names not in the registry (ignored): {', '.join(unknown)}")


def select_servers(
    registry: Sequence[ServerDescriptor],
    only: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> List[ServerDescriptor]:
    """
    Applies the --only and --exclude filters to the registry.

    Registry order is preserved. `only` is applied first, then `exclude`, so a
    name in both lists is excluded. Names that match nothing are ignored.

    :param registry: The full ordered server table.
    :param only: If given, keep only these names. An empty list keeps nothing.
    :param exclude: If given, drop these names.
    :return: The working set for this run.
    """
    known = {server.name for server in registry}
    selected = list(registry)

    if only is not None:
        only_set = set(only)
        _warn_unknown("only", only_set, known)
        selected = [server for server in selected if server.name in only_set]

    if exclude:
        exclude_set = set(exclude)
        _warn_unknown("exclude", exclude_set, known)
        selected = [server for server in selected if server.name not in exclude_set]

    return selected
