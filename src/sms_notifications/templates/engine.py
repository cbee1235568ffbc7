"""Template engine — parameter validation and ``{placeholder}`` substitution."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sms_notifications.notification.classification import MessageType, OrderStatus

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


class TemplateValidationError(ValueError):
    """The template definition itself is invalid."""


class ParameterError(Exception):
    """Required template parameters were not supplied."""

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(missing)
        super().__init__(f"Missing required parameters: {', '.join(self.missing)}")


class TemplateNotFound(LookupError):
    def __init__(self, message_type: MessageType, order_status: OrderStatus | None):
        status = order_status.value if order_status else None
        super().__init__(f"No template registered for ({message_type.value}, {status})")
        self.message_type = message_type
        self.order_status = order_status


@dataclass(frozen=True)
class Template:
    message_type: MessageType
    order_status: OrderStatus | None
    body: str
    required_params: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.body:
            raise TemplateValidationError("Template body is required")
        # Accept any iterable of names but always store a frozenset.
        object.__setattr__(self, "required_params", frozenset(self.required_params))

    @property
    def key(self) -> tuple[MessageType, OrderStatus | None]:
        return self.message_type, self.order_status

    def placeholders(self) -> frozenset[str]:
        return frozenset(_PLACEHOLDER.findall(self.body))


def render(template: Template, params: Mapping[str, str]) -> str:
    """Substitute ``params`` into the template body.

    Placeholders without a supplied value are left as they are, and
    substituted values are never scanned again.
    """
    missing = template.required_params - params.keys()
    if missing:
        raise ParameterError(missing)

    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in params:
            return str(params[name])
        return match.group(0)

    return _PLACEHOLDER.sub(substitute, template.body)


class TemplateRegistry:
    """Read-only map of ``(message_type, order_status)`` to one template."""

    def __init__(self, templates: Iterable[Template] = ()):
        entries: dict[tuple[MessageType, OrderStatus | None], Template] = {}
        for template in templates:
            if template.key in entries:
                message_type, order_status = template.key
                raise ValueError(
                    f"Duplicate template for ({message_type.value}, "
                    f"{order_status.value if order_status else None})"
                )
            entries[template.key] = template
        self._entries = MappingProxyType(entries)

    def select(self, message_type: MessageType, order_status: OrderStatus | None) -> Template:
        try:
            return self._entries[(message_type, order_status)]
        except KeyError:
            raise TemplateNotFound(message_type, order_status) from None

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries.values())
