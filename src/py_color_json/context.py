from dataclasses import dataclass

from py_color_json.records import Attr


@dataclass(frozen=True)
class Context:
    """
    State accumulated on a handler through `with_fields` and `with_group`.

    Both sequences are tuples, so deriving a child always builds new storage
    and a parent can keep deriving siblings that never see each other's
    additions.
    """

    attrs: tuple[Attr, ...] = ()
    groups: tuple[str, ...] = ()

    def with_fields(self, attrs: tuple[Attr, ...]) -> "Context":
        """Returns a new Context with `attrs` appended to the persisted attributes."""
        if not attrs:
            return self
        return Context(attrs=self.attrs + tuple(attrs), groups=self.groups)

    def with_group(self, name: str) -> "Context":
        """Returns a new Context with `name` appended to the group path."""
        return Context(attrs=self.attrs, groups=self.groups + (name,))
