"""Tag filters that decide which beaker examples run.

A tag is written ``name:value`` on the command line and carried by an
example as a pytest marker: ``@pytest.mark.depth("shallow")`` is tagged
``depth:shallow`` and a bare ``@pytest.mark.smoke`` is tagged ``smoke:true``.
A leading ``~`` turns a tag into an exclusion; leading ``@`` is ignored.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from constants import BUILTIN_MARKERS

_PREFIX = re.compile(r'^(~@|~|@)')


def _render(value: Any) -> str:
    """String form used for comparisons: True renders as 'true'"""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def marker_value(marker) -> Any:
    """Value of a marker; markers without arguments are flags"""
    return marker.args[0] if marker.args else True


class TagFilters:
    """Inclusion and exclusion filters parsed from --tag arguments"""

    def __init__(self, inclusions: Optional[Dict[str, Any]] = None,
                 exclusions: Optional[Dict[str, Any]] = None):
        self.inclusions = dict(inclusions or {})
        self.exclusions = dict(exclusions or {})

    def __bool__(self):
        return bool(self.inclusions or self.exclusions)

    def __eq__(self, other):
        if not isinstance(other, TagFilters):
            return NotImplemented
        return self.inclusions == other.inclusions and self.exclusions == other.exclusions

    def __repr__(self):
        return f"TagFilters(inclusions={self.inclusions!r}, exclusions={self.exclusions!r})"

    @staticmethod
    def _item_has(item, name: str, value: Any) -> bool:
        marker = item.get_closest_marker(name)
        if marker is None:
            return False
        return _render(marker_value(marker)) == _render(value)

    def matches(self, item) -> bool:
        """True when the item passes every filter.

        An item is kept if it carries any inclusion tag (or there are none)
        and carries no exclusion tag.
        """
        if self.inclusions and not any(
            self._item_has(item, name, value) for name, value in self.inclusions.items()
        ):
            return False
        return not any(
            self._item_has(item, name, value) for name, value in self.exclusions.items()
        )

    def to_args(self) -> List[str]:
        """Tag strings that rebuild these filters in a worker process"""
        args = []
        for prefix, filters in (('', self.inclusions), ('~', self.exclusions)):
            for name, value in filters.items():
                tag = name if value is True else f"{name}:{value}"
                args.append(prefix + tag)
        return args


def parse_tags(selected_tags: Optional[Iterable[str]]) -> TagFilters:
    """Parse --tag arguments into filters.

    Examples
    --------
    >>> parse_tags(['depth:shallow', '~@speed:slow', 'smoke'])
    TagFilters(inclusions={'depth': 'shallow', 'smoke': True}, exclusions={'speed': 'slow'})
    """
    filters = TagFilters()
    if selected_tags is None:
        return filters

    for tag in selected_tags:
        target = filters.exclusions if tag.startswith('~') else filters.inclusions

        parts = _PREFIX.sub('', tag).split(':')
        name = parts[0]
        value = parts[1] if len(parts) > 1 else True

        target[name] = value

    return filters


def tag_strings(item) -> List[str]:
    """The name:value tags an item carries, builtin pytest markers excluded"""
    tags = []
    seen = set()
    for marker in item.iter_markers():
        if marker.name in BUILTIN_MARKERS or marker.name in seen:
            continue
        seen.add(marker.name)
        # closest marker wins, matching how filters see the item
        closest = item.get_closest_marker(marker.name)
        tags.append(f"{marker.name}:{_render(marker_value(closest))}")
    return tags
