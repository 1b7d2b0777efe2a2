class GameError(Exception):
    """A rejected player action.

    Raised before any state is touched; the socket layer reports the message
    to the originating connection only.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
