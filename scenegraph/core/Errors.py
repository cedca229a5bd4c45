"""
Error taxonomy for the scene graph model and its repository.

All errors derive from ValueError so callers that only care about "the request
was rejected" can keep catching ValueError.
"""


class SceneGraphError(ValueError):
    """Base class for every rejection raised by the model."""


class UnknownNode(SceneGraphError):
    """An operation referenced a node id that is not in the store."""


class UnknownEdge(UnknownNode):
    """An operation referenced an edge id that is not in the store."""


class InvalidConnection(SceneGraphError):
    """The connection rules rejected a (source, target, handle) triple."""


class CycleDetected(InvalidConnection):
    """The edge would make a container (transitively) contain itself."""


class InvalidOperation(SceneGraphError):
    """A structurally disallowed request, e.g. touching the scene root."""


class MalformedGraph(SceneGraphError):
    """A store invariant was found broken while reading the graph."""


class RepositoryError(SceneGraphError):
    """The graph repository could not complete a request."""


class AlreadyExists(RepositoryError):
    pass


class Forbidden(RepositoryError):
    pass


class NotFound(RepositoryError):
    pass


class InvalidName(RepositoryError):
    pass


__all__ = [
    "SceneGraphError",
    "UnknownNode",
    "UnknownEdge",
    "InvalidConnection",
    "CycleDetected",
    "InvalidOperation",
    "MalformedGraph",
    "RepositoryError",
    "AlreadyExists",
    "Forbidden",
    "NotFound",
    "InvalidName",
]
