"""Exception types raised by ormbehaviors."""


class OrmBehaviorsError(Exception):
    """Base class for all ormbehaviors errors."""


class ConfigurationError(OrmBehaviorsError):
    """Invalid entity metadata or behavior options."""


class InvalidCallError(OrmBehaviorsError):
    """An operation was called on a record in the wrong state."""


class StorageError(OrmBehaviorsError):
    """A record store operation failed."""


class RelatedSaveError(OrmBehaviorsError):
    """A related record could not be saved together with its owner."""

    def __init__(self, relation: str, errors: dict[str, list[str]]):
        self.relation = relation
        self.errors = errors
        super().__init__(f"Unable to save related '{relation}'. Errors: {errors}")
