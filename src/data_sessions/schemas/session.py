"""Session configuration and stored entry schemas."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, fields
from typing import Any

from pydantic import BaseModel, ConfigDict

from ..exceptions import ConfigurationError


def _always_valid(_value: Any) -> bool:
    return True


def _always_invalid(_value: Any) -> bool:
    return False


class DataSessionEntry(BaseModel):
    """Stored record for one data session.

    ``data`` is never None while the entry is considered present; an entry
    holding None is treated exactly like a missing entry.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Any
    timestamp: int
    depends_on_timestamps: list[int] | None = None

    @property
    def is_present(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class SessionSpec:
    """Configuration for a single data session registration.

    Attributes:
        name: Unique, non-empty session name
        setup: Computation producing the value; may be sync or async
        validate: Predicate over the cached value. None or False means the
            cache is always invalid, True means it is always valid
        on_invalidated: Hook given the stale value before recomputation
        pre_setup: Side-effecting computation run before ``setup``
        recreate: Light transform applied to valid cached data
        depends_on: Ordered parent session names; a single string is accepted
        share_across_specs: Also save and load through the persistence bridge
    """

    name: str
    setup: Callable[[], Any]
    validate: Callable[[Any], Any] | bool | None = None
    on_invalidated: Callable[[Any], Any] | None = None
    pre_setup: Callable[[], Any] | None = None
    recreate: Callable[[Any], Any] | None = None
    depends_on: Sequence[str] | str | None = field(default_factory=tuple)
    share_across_specs: bool = False

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise ConfigurationError("Missing data session name")
        if not callable(self.setup):
            raise ConfigurationError(f"Data session {self.name!r} needs a callable setup")

        validate = self.validate
        if validate is None or validate is False:
            validate = _always_invalid
        elif validate is True:
            validate = _always_valid
        elif not callable(validate):
            raise ConfigurationError(
                f"Data session {self.name!r} validate must be callable or a boolean"
            )
        object.__setattr__(self, "validate", validate)

        for hook_name in ("on_invalidated", "pre_setup", "recreate"):
            hook = getattr(self, hook_name)
            if hook is not None and not callable(hook):
                raise ConfigurationError(
                    f"Data session {self.name!r} {hook_name} must be callable"
                )

        depends_on = self.depends_on
        if depends_on is None:
            depends_on = ()
        elif isinstance(depends_on, str):
            depends_on = (depends_on,)
        depends_on = tuple(depends_on)
        if not all(isinstance(dep, str) and dep for dep in depends_on):
            raise ConfigurationError(
                f"Data session {self.name!r} has an empty dependency name"
            )
        object.__setattr__(self, "depends_on", depends_on)
        object.__setattr__(self, "share_across_specs", bool(self.share_across_specs))

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "SessionSpec":
        """Build a spec from a mapping of named options.

        Raises:
            ConfigurationError: On unknown option names or a missing setup
        """
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown data session options: {', '.join(sorted(unknown))}"
            )
        if not options.get("name"):
            raise ConfigurationError("Missing data session name")
        if "setup" not in options:
            raise ConfigurationError(
                f"Data session {options.get('name')!r} needs a callable setup"
            )
        return cls(**options)
