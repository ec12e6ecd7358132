from dataclasses import dataclass, fields
from datetime import datetime, timezone

from osmcat.exceptions import ConfigError

# Value a cleaned timestamp gets. pyosmium reports unset timestamps as the epoch.
UNSET_TIMESTAMP = datetime.fromtimestamp(0, timezone.utc)

CLEAN_ATTRIBUTES = ("version", "changeset", "timestamp", "uid", "user")

_UNSET_VALUES = {
    "version": 0,
    "changeset": 0,
    "timestamp": UNSET_TIMESTAMP,
    "uid": 0,
    "user": "",
}


@dataclass(frozen=True)
class CleanOptions:
    """Which provenance attributes get reset on every entity."""

    version: bool = False
    changeset: bool = False
    timestamp: bool = False
    uid: bool = False
    user: bool = False

    @classmethod
    def from_names(cls, names) -> "CleanOptions":
        """
        Build options from attribute names as given on -c/--clean.

        Raises ConfigError for a name outside CLEAN_ATTRIBUTES.
        """
        enabled = {}
        for name in names:
            if name not in CLEAN_ATTRIBUTES:
                raise ConfigError(f"Unknown attribute on -c/--clean option: '{name}'")
            enabled[name] = True
        return cls(**enabled)

    def names(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def describe(self) -> str:
        return ",".join(self.names()) or "(none)"

    def __bool__(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))


def scrub(entity, options: CleanOptions):
    """
    Reset the attributes selected in *options* on *entity* in place.

    Only OSM objects are cleaned. Changesets carry no version and pass
    through untouched. Returns the entity.
    """
    if not hasattr(entity, "version"):
        return entity
    for name in options.names():
        setattr(entity, name, _UNSET_VALUES[name])
    return entity


def scrub_buffer(buffer: list, options: CleanOptions) -> list:
    """Scrub every entity of a buffer, keeping its order and length."""
    if not options:
        return buffer
    for entity in buffer:
        scrub(entity, options)
    return buffer
