class DongleNotFoundError(RuntimeError):
    """Raised when no matching bridge dongle could be found."""
    pass


class MultipleDonglesError(RuntimeError):
    """Raised when more than one matching bridge dongle is found."""
    def __init__(self, message, devices):
        super().__init__(message)
        self.devices = devices  # list[DongleInfo]
