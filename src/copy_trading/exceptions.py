class CopyTradeError(Exception):
    pass


class ConfigAlreadyExistsError(CopyTradeError):
    """The account already tracks this wallet."""


class ConfigNotFoundError(CopyTradeError):
    pass


class InvalidConfigError(CopyTradeError):
    pass
