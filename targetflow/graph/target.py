"""Target descriptors and the registration table that holds them.

A build file declares its targets once, at import time, into a
``TargetRegistry``. The registry is the only place target names are bound to
descriptors; the graph and runner only ever read it.
"""

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from targetflow.config import BuildConfig

logger = structlog.get_logger(__name__)

TargetAction = Callable[["BuildConfig"], None]


class DuplicateTargetError(ValueError):
    """Raised when a target name is registered twice."""

    def __init__(self, name: str):
        self.message = f"Target '{name}' is already registered"
        super().__init__(self.message)
        self.name = name


@dataclass(frozen=True)
class Target:
    """A named unit of build work.

    Attributes:
        name: Unique target name
        action: Work to perform, called with the BuildConfig; None for
            targets that only aggregate their dependencies
        depends_on: Targets that must be scheduled and succeed first
        after: Targets that run earlier if they are scheduled too
        before: Targets that run later if they are scheduled too
        triggered_by: Targets whose scheduling also schedules this one
        triggers: Targets scheduled whenever this one is
        requires: Build parameters that must be set before the run starts
        description: Short help text
    """

    name: str
    action: TargetAction | None = None
    depends_on: tuple[str, ...] = ()
    after: tuple[str, ...] = ()
    before: tuple[str, ...] = ()
    triggered_by: tuple[str, ...] = ()
    triggers: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            msg = "Target name must not be empty"
            raise ValueError(msg)
        for attr in ("depends_on", "after", "before", "triggered_by", "triggers", "requires"):
            value = getattr(self, attr)
            if isinstance(value, str):
                value = (value,)
            # frozen dataclass
            object.__setattr__(self, attr, tuple(dict.fromkeys(value)))

    def references(self) -> set[str]:
        """All target names this target mentions."""
        return {
            *self.depends_on,
            *self.after,
            *self.before,
            *self.triggered_by,
            *self.triggers,
        }


@dataclass
class TargetRegistry:
    """Ordered table of declared targets.

    Example:
        >>> targets = TargetRegistry()
        >>> @targets.target(depends_on=["Restore"])
        ... def Compile(config):
        ...     ...
        >>> targets.add(Target("Restore"))
    """

    _targets: dict[str, Target] = field(default_factory=dict)

    def add(self, target: Target) -> Target:
        """Register a target descriptor.

        Raises:
            DuplicateTargetError: If the name is already taken
        """
        if target.name in self._targets:
            raise DuplicateTargetError(target.name)
        self._targets[target.name] = target
        logger.debug(
            "target_registered",
            build_target=target.name,
            depends_on=list(target.depends_on),
        )
        return target

    def target(
        self,
        name: str | None = None,
        *,
        depends_on: Iterable[str] = (),
        after: Iterable[str] = (),
        before: Iterable[str] = (),
        triggered_by: Iterable[str] = (),
        triggers: Iterable[str] = (),
        requires: Iterable[str] = (),
        description: str | None = None,
    ) -> Callable[[TargetAction], TargetAction]:
        """Decorator registering a function as the action of a target.

        The target is named after the function unless ``name`` is given, and
        the description defaults to the first line of its docstring. The
        function itself is returned unchanged.
        """

        def decorator(func: TargetAction) -> TargetAction:
            doc = (func.__doc__ or "").strip().splitlines()
            self.add(
                Target(
                    name=name or func.__name__,
                    action=func,
                    depends_on=depends_on,
                    after=after,
                    before=before,
                    triggered_by=triggered_by,
                    triggers=triggers,
                    requires=requires,
                    description=description if description is not None else (doc[0] if doc else ""),
                ),
            )
            return func

        return decorator

    def get(self, name: str) -> Target | None:
        return self._targets.get(name)

    def names(self) -> list[str]:
        """Target names in declaration order."""
        return list(self._targets)

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __getitem__(self, name: str) -> Target:
        return self._targets[name]

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)
