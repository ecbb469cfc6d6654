"""Exceptions raised by the layout engines."""


class InvalidRootError(ValueError):
    """The requested root person is not part of the people collection."""

    def __init__(self, root_id: str):
        super().__init__(f"Root person ID {root_id} not found in people")
        self.root_id = root_id
