from typing import Any, Dict

import msgspec

from .log_level import LogLevel


class Entry(msgspec.Struct, kw_only=True):
    """
    Base log entry. Every field of a subclass can be referenced by name
    from a line template.
    """

    level: LogLevel
    message: str | None = None
    tags: set[str] = msgspec.field(default_factory=set)

    def fields(self) -> Dict[str, Any]:
        values = {name: getattr(self, name) for name in self.__struct_fields__}
        values["level"] = self.level.value

        return values

    def to_template(
        self,
        template: str,
        context: Dict[str, Any] | None = None,
    ) -> str:
        return template.format(**{**self.fields(), **(context or {})})
